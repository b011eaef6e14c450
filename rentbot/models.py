from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Property(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    address: str
    type: Literal["Apartment", "House", "Condo", "Commercial", "Other"]
    size: int
    owner: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class Unit(BaseModel):
    id: str = Field(default_factory=_new_id)
    unit_id: str
    property_id: str
    floor: str
    rent: float
    is_available: bool = True
    created_at: datetime = Field(default_factory=_now)


class Contact(BaseModel):
    email: str = ""
    phone: str = ""


class PaymentRecord(BaseModel):
    date: date
    amount: float
    status: Literal["Paid", "Pending", "Late", "Partial"] = "Pending"


class RentInfo(BaseModel):
    amount: float
    due_date: int = Field(default=1, ge=1, le=31)
    payment_history: List[PaymentRecord] = Field(default_factory=list)


class Tenant(BaseModel):
    id: str = Field(default_factory=_new_id)
    tenant_id: str
    name: str
    contact: Contact = Field(default_factory=Contact)
    unit: str
    move_in_date: date
    rent_info: RentInfo
    created_at: datetime = Field(default_factory=_now)
