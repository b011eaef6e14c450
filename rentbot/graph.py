from __future__ import annotations

import logging
from typing import Optional

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field

from rentbot.commands import CommandRouter
from rentbot.engine import FlowEngine
from rentbot.llm import ReplyGenerator
from rentbot.transcript import TranscriptStore

logger = logging.getLogger(__name__)


class ChatTurn(BaseModel):
    user_id: str
    message: str
    history: list[dict[str, str]] = Field(default_factory=list)
    reply: Optional[str] = None
    handled_by: Optional[str] = None


def _replied(state: ChatTurn) -> bool:
    return state.reply is not None


def build_chat_graph(
    engine: FlowEngine,
    commands: CommandRouter,
    responder: ReplyGenerator,
    transcript: TranscriptStore,
    history_limit: int = 20,
):
    def remember(state: ChatTurn) -> dict:
        history = transcript.fetch_recent(state.user_id, history_limit)
        transcript.append_message(state.user_id, state.message, True)
        return {"history": history}

    def flow(state: ChatTurn) -> dict:
        reply = engine.dispatch(state.user_id, state.message)
        return {"reply": reply, "handled_by": "flow" if reply is not None else None}

    def command(state: ChatTurn) -> dict:
        reply = commands.handle(state.user_id, state.message)
        return {"reply": reply, "handled_by": "command" if reply is not None else None}

    def converse(state: ChatTurn) -> dict:
        reply = responder.generate_reply(state.user_id, state.history, state.message)
        return {"reply": reply, "handled_by": "llm"}

    def record(state: ChatTurn) -> None:
        if state.reply:
            transcript.append_message(state.user_id, state.reply, False)
        logger.debug("Turn for %s handled by %s", state.user_id, state.handled_by)

    builder = StateGraph(ChatTurn)
    builder.add_node("remember", remember)
    builder.add_node("flow", flow)
    builder.add_node("command", command)
    builder.add_node("converse", converse)
    builder.add_node("record", record)

    builder.set_entry_point("remember")
    builder.add_edge("remember", "flow")
    builder.add_conditional_edges("flow", lambda s: "record" if _replied(s) else "command", ["record", "command"])
    builder.add_conditional_edges("command", lambda s: "record" if _replied(s) else "converse", ["record", "converse"])
    builder.add_edge("converse", "record")
    builder.add_edge("record", END)

    return builder.compile()


def run_turn(graph, user_id: str, message: str) -> ChatTurn:
    result = graph.invoke(ChatTurn(user_id=user_id, message=message))
    if not isinstance(result, ChatTurn):
        result = ChatTurn.model_validate(result)
    return result
