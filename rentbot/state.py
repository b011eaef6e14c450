from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field


class FlowKind(str, Enum):
    ADD_PROPERTY = "add_property"
    ADD_UNIT = "add_unit"
    ADD_TENANT = "add_tenant"


class ByIndex(BaseModel):
    """1-based position into a list fetched at commit time."""

    kind: Literal["index"] = "index"
    position: int


class ByIdentifier(BaseModel):
    kind: Literal["identifier"] = "identifier"
    identifier: str


Reference = Union[ByIndex, ByIdentifier]


class ValidationResult(BaseModel):
    valid: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


class FlowState(BaseModel):
    user_id: str
    flow_kind: FlowKind

    step_index: int = 0
    data: Dict[str, Any] = Field(default_factory=dict)
    completed: bool = False


class ListingCursor(BaseModel):
    listing: Literal["properties", "units", "tenants"]
    offset: int = 0
