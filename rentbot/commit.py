from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Callable

from rentbot.ids import generate_tenant_id, generate_unique, generate_unit_id
from rentbot.models import Contact, Property, RentInfo, Tenant, Unit
from rentbot.repository import EntityStore
from rentbot.state import ByIdentifier, ByIndex, FlowKind, Reference

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"[0-9]+")


class CommitError(Exception):
    """A completed flow could not be saved. The message is shown to the user."""


def format_amount(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def _as_reference(value: Any) -> Reference:
    if isinstance(value, (ByIndex, ByIdentifier)):
        return value
    text = str(value).strip()
    if _INDEX_RE.fullmatch(text):
        return ByIndex(position=int(text))
    return ByIdentifier(identifier=text)


class EntityCommitter:
    def __init__(self, store: EntityStore) -> None:
        self.store = store
        self._handlers: dict[FlowKind, Callable[[dict[str, Any]], str]] = {
            FlowKind.ADD_PROPERTY: self.save_property,
            FlowKind.ADD_UNIT: self.save_unit,
            FlowKind.ADD_TENANT: self.save_tenant,
        }

    def commit(self, kind: FlowKind, data: dict[str, Any]) -> str:
        handler = self._handlers.get(kind)
        if handler is None:
            raise ValueError(f"Unknown flow type: {kind}")
        return handler(data)

    def save_property(self, data: dict[str, Any]) -> str:
        prop = Property(
            name=data["name"],
            address=data["address"],
            type=data["type"],
            size=data["size"],
            owner=data.get("owner"),
        )
        try:
            self.store.create_property(prop)
        except Exception as exc:
            logger.exception("Error saving property")
            raise CommitError(f"Failed to save property: {exc}") from exc

        logger.info("Created property %s (%s)", prop.id, prop.name)
        return (
            f'Great! I\'ve added the property "{prop.name}" to your account. '
            'You can now add units to this property by saying "add unit".'
        )

    def resolve_property(self, ref: Reference) -> Property:
        if isinstance(ref, ByIndex):
            properties = self.store.list_properties(sort_by_name=True)
            if ref.position < 1 or ref.position > len(properties):
                raise CommitError("Invalid property selection")
            return properties[ref.position - 1]

        prop = self.store.get_property(ref.identifier)
        if prop is None:
            raise CommitError(f"Property {ref.identifier} not found")
        return prop

    def save_unit(self, data: dict[str, Any]) -> str:
        prop = self.resolve_property(_as_reference(data["property"]))
        try:
            unit = Unit(
                unit_id=generate_unique(generate_unit_id, lambda c: self.store.find_unit_by_identifier(c) is not None),
                property_id=prop.id,
                floor=data["floor"],
                rent=data["rent"],
                is_available=data["is_available"],
            )
            self.store.create_unit(unit)
        except Exception as exc:
            logger.exception("Error saving unit")
            raise CommitError(f"Failed to save unit: {exc}") from exc

        logger.info("Created unit %s on property %s", unit.unit_id, prop.id)
        availability = "available" if unit.is_available else "not available"
        return (
            f"Great! I've added unit {unit.unit_id} to {prop.name}. This unit is on floor {unit.floor} "
            f"with a monthly rent of ${format_amount(unit.rent)} and is currently {availability} for rent."
        )

    def resolve_unit(self, ref: Reference) -> Unit:
        if isinstance(ref, ByIndex):
            units = self.store.list_available_units(sort_by_identifier=True)
            if ref.position < 1 or ref.position > len(units):
                raise CommitError("Invalid unit selection")
            return units[ref.position - 1]

        unit = self.store.find_unit_by_identifier(ref.identifier)
        if unit is None:
            raise CommitError(f"Unit {ref.identifier} not found")
        return unit

    def save_tenant(self, data: dict[str, Any]) -> str:
        unit = self.resolve_unit(_as_reference(data["unit"]))
        try:
            tenant = Tenant(
                tenant_id=generate_unique(
                    generate_tenant_id, lambda c: self.store.find_tenant_by_identifier(c) is not None
                ),
                name=data["name"],
                contact=Contact(email=data.get("email") or "", phone=data.get("phone") or ""),
                unit=unit.id,
                move_in_date=date.fromisoformat(data["move_in_date"]),
                rent_info=RentInfo(amount=data["rent_amount"], due_date=data["rent_due_date"]),
            )
            self.store.create_tenant(tenant)
            # not transactional: a failure here leaves the tenant saved and the unit still available
            self.store.update_unit_availability(unit.id, False)
        except Exception as exc:
            logger.exception("Error saving tenant")
            raise CommitError(f"Failed to save tenant: {exc}") from exc

        logger.info("Created tenant %s in unit %s", tenant.tenant_id, unit.unit_id)
        return (
            f"Great! I've added {tenant.name} as a tenant for unit {unit.unit_id}. "
            f"The tenant ID is {tenant.tenant_id}. The move-in date is set to {data['move_in_date']} "
            f"with a monthly rent of ${format_amount(tenant.rent_info.amount)} "
            f"due on day {tenant.rent_info.due_date} of each month."
        )
