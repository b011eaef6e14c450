from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable

from rentbot.state import ByIdentifier, ByIndex, FlowKind, ValidationResult

logger = logging.getLogger(__name__)

Validator = Callable[[str], ValidationResult]

PROPERTY_TYPES = ["apartment", "house", "condo", "commercial", "other"]
AVAILABLE_WORDS = {"yes", "y", "true", "available", "1"}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[0-9()\-\s+]*$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DECIMAL_PREFIX_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_INT_PREFIX_RE = re.compile(r"[+-]?\d+")
_INDEX_RE = re.compile(r"[0-9]+")


def _text(raw: Any) -> str:
    return str(raw if raw is not None else "").strip()


def _parse_amount(raw: Any) -> float | None:
    cleaned = re.sub(r"[^0-9.]", "", _text(raw))
    match = _DECIMAL_PREFIX_RE.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def _reference(raw: Any, missing: str) -> ValidationResult:
    candidate = _text(raw)
    if not candidate:
        return ValidationResult.fail(missing)
    if _INDEX_RE.fullmatch(candidate):
        return ValidationResult.ok(ByIndex(position=int(candidate)))
    return ValidationResult.ok(ByIdentifier(identifier=candidate))


# property


def property_name(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if len(candidate) < 2:
        return ValidationResult.fail("Property name is too short. Please provide a longer name.")
    return ValidationResult.ok(candidate)


def property_address(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if len(candidate) < 5:
        return ValidationResult.fail("Please provide a complete address.")
    return ValidationResult.ok(candidate)


def property_type(raw: Any) -> ValidationResult:
    lowered = _text(raw).lower()
    if lowered not in PROPERTY_TYPES:
        return ValidationResult.fail(
            "Please select a valid property type: Apartment, House, Condo, Commercial, or Other."
        )
    return ValidationResult.ok(lowered.capitalize())


def property_size(raw: Any) -> ValidationResult:
    digits = re.sub(r"[^0-9]", "", _text(raw))
    size = int(digits) if digits else 0
    if size <= 0:
        return ValidationResult.fail("Please provide a valid size in square feet (a positive number).")
    return ValidationResult.ok(size)


# unit


def unit_property(raw: Any) -> ValidationResult:
    return _reference(raw, "Please tell me which property this unit belongs to (a number from the list or a property ID).")


def unit_floor(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if not candidate:
        return ValidationResult.fail("Please provide a valid floor number or identifier.")
    return ValidationResult.ok(candidate)


def rent(raw: Any) -> ValidationResult:
    amount = _parse_amount(raw)
    if amount is None or amount <= 0:
        return ValidationResult.fail("Please provide a valid rent amount (a positive number).")
    return ValidationResult.ok(amount)


def unit_is_available(raw: Any) -> ValidationResult:
    return ValidationResult.ok(_text(raw).lower() in AVAILABLE_WORDS)


# tenant


def tenant_unit(raw: Any) -> ValidationResult:
    return _reference(raw, "Please tell me which unit this tenant will occupy (a number from the list or a unit ID).")


def tenant_name(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if len(candidate) < 2:
        return ValidationResult.fail("Tenant name is too short. Please provide a full name.")
    return ValidationResult.ok(candidate)


def tenant_email(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if candidate and not _EMAIL_RE.match(candidate):
        return ValidationResult.fail("Please provide a valid email address or leave it blank.")
    return ValidationResult.ok(candidate)


def tenant_phone(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if not _PHONE_RE.match(candidate):
        return ValidationResult.fail("Please provide a valid phone number or leave it blank.")
    return ValidationResult.ok(candidate)


def tenant_move_in_date(raw: Any) -> ValidationResult:
    candidate = _text(raw)
    if not _DATE_RE.match(candidate):
        return ValidationResult.fail("Please provide a valid move-in date in YYYY-MM-DD format.")
    try:
        parsed = datetime.strptime(candidate, "%Y-%m-%d").date()
    except ValueError:
        return ValidationResult.fail("Please provide a valid move-in date.")
    return ValidationResult.ok(parsed.isoformat())


def tenant_rent_due_date(raw: Any) -> ValidationResult:
    match = _INT_PREFIX_RE.match(_text(raw))
    day = int(match.group(0)) if match else None
    if day is None or day < 1 or day > 31:
        return ValidationResult.fail("Please provide a valid day of the month (1-31).")
    return ValidationResult.ok(day)


VALIDATORS: dict[tuple[FlowKind, str], Validator] = {
    (FlowKind.ADD_PROPERTY, "name"): property_name,
    (FlowKind.ADD_PROPERTY, "address"): property_address,
    (FlowKind.ADD_PROPERTY, "type"): property_type,
    (FlowKind.ADD_PROPERTY, "size"): property_size,
    (FlowKind.ADD_UNIT, "property"): unit_property,
    (FlowKind.ADD_UNIT, "floor"): unit_floor,
    (FlowKind.ADD_UNIT, "rent"): rent,
    (FlowKind.ADD_UNIT, "is_available"): unit_is_available,
    (FlowKind.ADD_TENANT, "unit"): tenant_unit,
    (FlowKind.ADD_TENANT, "name"): tenant_name,
    (FlowKind.ADD_TENANT, "email"): tenant_email,
    (FlowKind.ADD_TENANT, "phone"): tenant_phone,
    (FlowKind.ADD_TENANT, "move_in_date"): tenant_move_in_date,
    (FlowKind.ADD_TENANT, "rent_amount"): rent,
    (FlowKind.ADD_TENANT, "rent_due_date"): tenant_rent_due_date,
}

_ENTITY_LABELS = {
    FlowKind.ADD_PROPERTY: "property",
    FlowKind.ADD_UNIT: "unit",
    FlowKind.ADD_TENANT: "tenant",
}


def get_validator(kind: FlowKind, field: str) -> Validator | None:
    return VALIDATORS.get((kind, field))


def validate(kind: FlowKind, field: str, raw: Any) -> ValidationResult:
    validator = get_validator(kind, field)
    if validator is None:
        logger.error("No validator registered for %s.%s", kind.value, field)
        return ValidationResult.fail(f"Unknown {_ENTITY_LABELS.get(kind, kind.value)} field: {field}")
    return validator(raw)
