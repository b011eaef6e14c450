from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rentbot.state import FlowKind
from rentbot.validators import Validator, get_validator

_FLOWS_PATH = Path(__file__).with_name("flows.json")


@dataclass(frozen=True)
class FlowDefinition:
    kind: FlowKind
    label: str
    steps: tuple[str, ...]
    prompts: dict[str, str]
    validators: dict[str, Validator]

    @property
    def field_count(self) -> int:
        return len(self.steps)

    def field_at(self, index: int) -> str:
        return self.steps[index]

    def prompt_for(self, field: str) -> str:
        return self.prompts.get(field) or f"Please provide the {field.replace('_', ' ')}."


def _build(raw: dict[str, Any]) -> FlowDefinition:
    kind = FlowKind(raw["kind"])
    steps: list[str] = []
    prompts: dict[str, str] = {}
    validators: dict[str, Validator] = {}
    for step in raw.get("steps") or []:
        field = str(step["field"])
        if field in prompts:
            raise RuntimeError(f"Duplicate step {field!r} in flow {kind.value}")
        validator = get_validator(kind, field)
        if validator is None:
            raise RuntimeError(f"No validator for step {field!r} in flow {kind.value}")
        steps.append(field)
        prompts[field] = str(step.get("prompt") or "")
        validators[field] = validator
    if not steps:
        raise RuntimeError(f"Flow {kind.value} has no steps")
    return FlowDefinition(
        kind=kind,
        label=str(raw.get("label") or kind.value),
        steps=tuple(steps),
        prompts=prompts,
        validators=validators,
    )


def load_flows(path: Path = _FLOWS_PATH) -> dict[FlowKind, FlowDefinition]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    flows = {d.kind: d for d in (_build(raw) for raw in payload["flows"])}
    missing = set(FlowKind) - set(flows)
    if missing:
        raise RuntimeError(f"Missing flow definitions: {sorted(k.value for k in missing)}")
    return flows


FLOWS: dict[FlowKind, FlowDefinition] = load_flows()


def get_flow(kind: FlowKind) -> FlowDefinition:
    return FLOWS[kind]
