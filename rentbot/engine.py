from __future__ import annotations

import logging
from typing import Any, Optional

from rentbot.commit import CommitError, EntityCommitter
from rentbot.flows import FLOWS, FlowDefinition
from rentbot.state import FlowKind, FlowState
from rentbot.storage import FlowStateStore

logger = logging.getLogger(__name__)

CANCEL_WORDS = {"cancel", "stop", "quit", "exit", "nevermind"}

NOT_IN_FLOW_MESSAGE = (
    "I'm not sure what you're referring to. You can start by adding a property, unit, or tenant."
)
CANCELLED_MESSAGE = "I've cancelled the current operation. How else can I help you?"
NOTHING_TO_CANCEL_MESSAGE = "There's no active operation to cancel."


def is_cancellation(text: str | None) -> bool:
    return (text or "").strip().lower() in CANCEL_WORDS


class FlowEngine:
    """Runs the add-property / add-unit / add-tenant dialogues one step at a time.

    Every public call holds the user's lock from the state store for its whole
    duration, so two messages from the same user never interleave.
    """

    def __init__(
        self,
        store: FlowStateStore,
        committer: EntityCommitter,
        flows: dict[FlowKind, FlowDefinition] | None = None,
    ) -> None:
        self.store = store
        self.committer = committer
        self.flows = flows if flows is not None else FLOWS

    def _flow(self, kind: FlowKind) -> FlowDefinition:
        flow = self.flows.get(kind)
        if flow is None:
            logger.error("Invalid flow type: %s", kind)
            raise ValueError(f"Invalid flow type: {kind}")
        return flow

    def active_flow(self, user_id: str) -> Optional[FlowState]:
        return self.store.load(user_id)

    def start_flow(self, user_id: str, kind: FlowKind | str, initial_data: dict[str, Any] | None = None) -> str:
        try:
            kind = FlowKind(kind)
        except ValueError:
            logger.error("Invalid flow type: %s", kind)
            raise
        flow = self._flow(kind)
        seed = dict(initial_data or {})

        with self.store.lock(user_id):
            if user_id in self.store:
                logger.info("Discarding unfinished flow for %s", user_id)
            first = flow.field_at(0)
            seeded_first = seed.pop(first, None)
            state = FlowState(user_id=user_id, flow_kind=kind, data=seed)
            self.store.save(state)
            logger.info("Started %s flow for %s", kind.value, user_id)

            if seeded_first is not None and str(seeded_first).strip():
                return self.process_step(user_id, str(seeded_first))
            return flow.prompt_for(first)

    def process_step(self, user_id: str, raw_input: str) -> str:
        with self.store.lock(user_id):
            state = self.store.load(user_id)
            if state is None:
                return NOT_IN_FLOW_MESSAGE

            flow = self._flow(state.flow_kind)
            field = flow.field_at(state.step_index)
            validator = flow.validators[field]

            result = validator(raw_input)
            if not result.valid:
                logger.debug("Rejected %s for %s: %s", field, user_id, result.error)
                return result.error or flow.prompt_for(field)

            state.data[field] = result.value
            state.step_index += 1

            if state.step_index < flow.field_count:
                self.store.save(state)
                return flow.prompt_for(flow.field_at(state.step_index))

            state.completed = True
            return self._complete(state)

    def _complete(self, state: FlowState) -> str:
        try:
            reply = self.committer.commit(state.flow_kind, state.data)
            logger.info("Completed %s flow for %s", state.flow_kind.value, state.user_id)
            return reply
        except CommitError as exc:
            logger.warning("Commit failed for %s flow of %s: %s", state.flow_kind.value, state.user_id, exc)
            return f"I encountered an error while saving your information: {exc}. Please try again."
        except Exception as exc:
            logger.exception("Error completing flow %s", state.flow_kind.value)
            return f"I encountered an error while saving your information: {exc}. Please try again."
        finally:
            self.store.delete(state.user_id)

    def cancel_flow(self, user_id: str) -> str:
        with self.store.lock(user_id):
            had_state = self.store.delete(user_id)
        if had_state:
            logger.info("Cancelled flow for %s", user_id)
            return CANCELLED_MESSAGE
        return NOTHING_TO_CANCEL_MESSAGE

    def dispatch(self, user_id: str, raw_message: str) -> Optional[str]:
        """Reply for the user's active flow, or ``None`` when there is none."""
        if is_cancellation(raw_message):
            return self.cancel_flow(user_id)

        with self.store.lock(user_id):
            if user_id not in self.store:
                return None
            return self.process_step(user_id, raw_message)
