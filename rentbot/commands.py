from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Optional

from rentbot.commit import format_amount
from rentbot.engine import FlowEngine
from rentbot.llm import ReplyGenerator
from rentbot.repository import EntityStore
from rentbot.state import FlowKind, ListingCursor

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Here's what I can do:\n"
    "- \"add property\", \"add unit\" or \"add tenant\" to record something new\n"
    "- \"list properties\", \"list units\" or \"list tenants\" to browse, then \"show more\" for the next page\n"
    "- \"summary <unit or tenant ID>\" for a quick overview\n"
    "- \"cancel\" at any point to stop what we're doing"
)

_ADD_UNIT_RE = re.compile(
    r"\b(?:add|new)\s+unit\b(?:\s+(?:to|for|in))?(?:\s+property)?(?:\s+(\d+|[0-9a-f]{32}))?\s*$",
    re.IGNORECASE,
)
_ADD_UNIT_LOOSE_RE = re.compile(r"\b(?:add|new)\s+unit\b", re.IGNORECASE)
_ADD_TENANT_RE = re.compile(
    r"\b(?:add|new)\s+tenant\b(?:\s+(?:to|for|in))?(?:\s+unit)?(?:\s+(\d+|U[A-Z0-9]{5}))?\s*$",
    re.IGNORECASE,
)
_ADD_TENANT_LOOSE_RE = re.compile(r"\b(?:add|new)\s+tenant\b", re.IGNORECASE)
_LIST_RE = re.compile(r"\b(?:list|show)\s+(?:all\s+|my\s+)?(properties|units|tenants)\b")
_MORE_RE = re.compile(r"^(?:show\s+more|more|next(?:\s+page)?)$")
_SUMMARY_RE = re.compile(r"^(?:get\s+)?summary\s+(?:of\s+|for\s+)?([A-Za-z0-9]+)$", re.IGNORECASE)


class CommandRouter:
    """Keyword commands tried after the flow engine and before free-form chat."""

    def __init__(
        self,
        engine: FlowEngine,
        store: EntityStore,
        responder: Optional[ReplyGenerator] = None,
        page_size: int = 10,
    ) -> None:
        self.engine = engine
        self.store = store
        self.responder = responder
        self.page_size = page_size
        self._cursors: dict[str, ListingCursor] = {}
        self._lock = threading.Lock()

    def handle(self, user_id: str, message: str) -> Optional[str]:
        text = (message or "").strip()
        lowered = text.lower()
        if not lowered:
            return None

        if "add property" in lowered or "new property" in lowered:
            return self.engine.start_flow(user_id, FlowKind.ADD_PROPERTY)

        if _ADD_UNIT_LOOSE_RE.search(text):
            match = _ADD_UNIT_RE.search(text)
            seed = match.group(1).lower() if match and match.group(1) else None
            return self._add_unit(user_id, seed)

        if _ADD_TENANT_LOOSE_RE.search(text):
            match = _ADD_TENANT_RE.search(text)
            seed = match.group(1).upper() if match and match.group(1) else None
            return self._add_tenant(user_id, seed)

        match = _LIST_RE.search(lowered)
        if match:
            cursor = ListingCursor(listing=match.group(1), offset=0)
            return self._render_page(user_id, cursor)

        if _MORE_RE.match(lowered):
            with self._lock:
                cursor = self._cursors.get(user_id)
            if cursor is None:
                return "There's nothing more to show. Try \"list properties\", \"list units\" or \"list tenants\"."
            return self._render_page(user_id, cursor)

        match = _SUMMARY_RE.match(text)
        if match:
            return self._summary(match.group(1).upper())

        if lowered in {"help", "menu", "commands"}:
            return HELP_TEXT

        return None

    def _add_unit(self, user_id: str, seed: Optional[str]) -> str:
        properties = self.store.list_properties(sort_by_name=True)
        if not properties:
            return "You don't have any properties yet. Say \"add property\" to create one first."
        if seed:
            return self.engine.start_flow(user_id, FlowKind.ADD_UNIT, {"property": seed})

        lines = [f"{i}. {p.name} ({p.address})" for i, p in enumerate(properties, start=1)]
        prompt = self.engine.start_flow(user_id, FlowKind.ADD_UNIT)
        return "\n".join(["I'll help you add a new unit. Here are your properties:", *lines, "", prompt, "Reply with the number."])

    def _add_tenant(self, user_id: str, seed: Optional[str]) -> str:
        units = self.store.list_available_units(sort_by_identifier=True)
        if not units:
            return "There are no available units right now. Say \"add unit\" to create one first."
        if seed:
            return self.engine.start_flow(user_id, FlowKind.ADD_TENANT, {"unit": seed})

        lines = [f"{i}. {u.unit_id} (floor {u.floor}, ${format_amount(u.rent)}/month)" for i, u in enumerate(units, start=1)]
        prompt = self.engine.start_flow(user_id, FlowKind.ADD_TENANT)
        return "\n".join(["I'll help you add a new tenant. Here are the available units:", *lines, "", prompt, "Reply with the number."])

    def _rows(self, listing: str) -> list[str]:
        if listing == "properties":
            return [f"{p.name}: {p.address} ({p.type}, {p.size} sq ft)" for p in self.store.list_properties(sort_by_name=True)]
        if listing == "units":
            units = sorted(self.store.list_units(), key=lambda u: u.unit_id)
            return [
                f"{u.unit_id}: floor {u.floor}, ${format_amount(u.rent)}/month, "
                f"{'available' if u.is_available else 'occupied'}"
                for u in units
            ]
        tenants = sorted(self.store.list_tenants(), key=lambda t: t.name)
        return [f"{t.tenant_id}: {t.name}, rent ${format_amount(t.rent_info.amount)} due day {t.rent_info.due_date}" for t in tenants]

    def _render_page(self, user_id: str, cursor: ListingCursor) -> str:
        rows = self._rows(cursor.listing)
        if not rows:
            with self._lock:
                self._cursors.pop(user_id, None)
            return f"You don't have any {cursor.listing} yet."

        start = min(cursor.offset, len(rows))
        page = rows[start : start + self.page_size]
        end = start + len(page)
        lines = [f"{cursor.listing.capitalize()} {start + 1}-{end} of {len(rows)}:"]
        lines.extend(f"{i}. {row}" for i, row in enumerate(page, start=start + 1))

        with self._lock:
            if end < len(rows):
                self._cursors[user_id] = ListingCursor(listing=cursor.listing, offset=end)
                lines.append('Say "show more" to see the next page.')
            else:
                self._cursors.pop(user_id, None)
        return "\n".join(lines)

    def _summary(self, identifier: str) -> str:
        lookups: list[tuple[str, Callable[[str], object]]] = [
            ("unit", self.store.find_unit_by_identifier),
            ("tenant", self.store.find_tenant_by_identifier),
        ]
        for entity_type, find in lookups:
            entity = find(identifier)
            if entity is None:
                continue
            if self.responder is None:
                return f"{entity_type.capitalize()} {identifier}: {entity.model_dump_json()}"
            return self.responder.summarize_entity(entity_type, entity.model_dump(mode="json"))
        return f"I couldn't find a unit or tenant with ID {identifier}."

