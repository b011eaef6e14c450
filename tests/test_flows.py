import json

import pytest

from rentbot.flows import FLOWS, get_flow, load_flows
from rentbot.state import FlowKind


def test_every_kind_has_a_definition():
    assert set(FLOWS) == set(FlowKind)


def test_step_order():
    assert get_flow(FlowKind.ADD_PROPERTY).steps == ("name", "address", "type", "size")
    assert get_flow(FlowKind.ADD_UNIT).steps == ("property", "floor", "rent", "is_available")
    assert get_flow(FlowKind.ADD_TENANT).steps == (
        "unit",
        "name",
        "email",
        "phone",
        "move_in_date",
        "rent_amount",
        "rent_due_date",
    )


def test_every_step_has_prompt_and_validator():
    for flow in FLOWS.values():
        for field in flow.steps:
            assert flow.prompts[field]
            assert callable(flow.validators[field])


def test_prompts():
    assert get_flow(FlowKind.ADD_PROPERTY).prompt_for("name") == "What's the name of the property?"
    assert get_flow(FlowKind.ADD_TENANT).prompt_for("rent_due_date") == "What day of the month is rent due? (1-31)"


def _write(tmp_path, flows):
    path = tmp_path / "flows.json"
    path.write_text(json.dumps({"flows": flows}), encoding="utf-8")
    return path


def test_duplicate_step_fails_to_load(tmp_path):
    path = _write(
        tmp_path,
        [{"kind": "add_property", "steps": [{"field": "name", "prompt": "a"}, {"field": "name", "prompt": "b"}]}],
    )
    with pytest.raises(RuntimeError, match="Duplicate step"):
        load_flows(path)


def test_step_without_validator_fails_to_load(tmp_path):
    path = _write(tmp_path, [{"kind": "add_unit", "steps": [{"field": "colour", "prompt": "?"}]}])
    with pytest.raises(RuntimeError, match="No validator"):
        load_flows(path)


def test_missing_kind_fails_to_load(tmp_path):
    path = _write(tmp_path, [{"kind": "add_property", "steps": [{"field": "name", "prompt": "?"}]}])
    with pytest.raises(RuntimeError, match="Missing flow definitions"):
        load_flows(path)
