"""Shared pytest fixtures."""

from typing import Callable

import pytest

from rentbot.commands import CommandRouter
from rentbot.commit import EntityCommitter
from rentbot.engine import FlowEngine
from rentbot.models import Property, Unit
from rentbot.repository import InMemoryEntityStore
from rentbot.storage import FlowStateStore
from rentbot.transcript import TranscriptStore


class FakeResponder:
    """Stands in for the Gemini-backed reply generator."""

    configured = True

    def __init__(self):
        self.calls = []
        self.summaries = []

    def generate_reply(self, user_id, history, new_message):
        self.calls.append((user_id, [dict(m) for m in history], new_message))
        return f"LLM: {new_message}"

    def summarize_entity(self, entity_type, data):
        self.summaries.append((entity_type, data))
        return f"Summary of {entity_type} {data.get('unit_id') or data.get('tenant_id')}"


@pytest.fixture
def entities() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def flow_states() -> FlowStateStore:
    return FlowStateStore()


@pytest.fixture
def committer(entities) -> EntityCommitter:
    return EntityCommitter(entities)


@pytest.fixture
def engine(flow_states, committer) -> FlowEngine:
    return FlowEngine(flow_states, committer)


@pytest.fixture
def responder() -> FakeResponder:
    return FakeResponder()


@pytest.fixture
def transcript() -> TranscriptStore:
    return TranscriptStore(redis_url=None, max_messages=50)


@pytest.fixture
def commands(engine, entities, responder) -> CommandRouter:
    return CommandRouter(engine, entities, responder, page_size=10)


@pytest.fixture
def add_property(entities) -> Callable[..., Property]:
    def _add(name: str, address: str = "12 Main Street", type: str = "Apartment", size: int = 1000) -> Property:
        prop = Property(name=name, address=address, type=type, size=size)
        entities.create_property(prop)
        return prop

    return _add


@pytest.fixture
def add_unit(entities) -> Callable[..., Unit]:
    def _add(prop: Property, unit_id: str, floor: str = "1", rent: float = 1200.0, is_available: bool = True) -> Unit:
        unit = Unit(unit_id=unit_id, property_id=prop.id, floor=floor, rent=rent, is_available=is_available)
        entities.create_unit(unit)
        return unit

    return _add
