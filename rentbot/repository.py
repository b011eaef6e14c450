from __future__ import annotations

import threading
from typing import Optional, Protocol

from rentbot.models import Property, Tenant, Unit


class EntityStore(Protocol):
    def create_property(self, prop: Property) -> str: ...

    def get_property(self, property_id: str) -> Optional[Property]: ...

    def list_properties(self, sort_by_name: bool = True) -> list[Property]: ...

    def create_unit(self, unit: Unit) -> str: ...

    def get_unit(self, unit_pk: str) -> Optional[Unit]: ...

    def find_unit_by_identifier(self, identifier: str) -> Optional[Unit]: ...

    def list_units(self, property_id: Optional[str] = None) -> list[Unit]: ...

    def list_available_units(self, sort_by_identifier: bool = True) -> list[Unit]: ...

    def update_unit_availability(self, unit_pk: str, is_available: bool) -> None: ...

    def create_tenant(self, tenant: Tenant) -> str: ...

    def get_tenant(self, tenant_pk: str) -> Optional[Tenant]: ...

    def find_tenant_by_identifier(self, identifier: str) -> Optional[Tenant]: ...

    def list_tenants(self) -> list[Tenant]: ...


class InMemoryEntityStore:
    """Thread-safe entity store. Every call is atomic on its own."""

    def __init__(self) -> None:
        self._properties: dict[str, Property] = {}
        self._units: dict[str, Unit] = {}
        self._tenants: dict[str, Tenant] = {}
        self._lock = threading.Lock()

    # properties

    def create_property(self, prop: Property) -> str:
        with self._lock:
            self._properties[prop.id] = prop.model_copy(deep=True)
        return prop.id

    def get_property(self, property_id: str) -> Optional[Property]:
        with self._lock:
            prop = self._properties.get(property_id)
            return prop.model_copy(deep=True) if prop else None

    def list_properties(self, sort_by_name: bool = True) -> list[Property]:
        with self._lock:
            props = [p.model_copy(deep=True) for p in self._properties.values()]
        if sort_by_name:
            props.sort(key=lambda p: p.name)
        else:
            props.sort(key=lambda p: p.created_at, reverse=True)
        return props

    # units

    def create_unit(self, unit: Unit) -> str:
        with self._lock:
            if any(u.unit_id == unit.unit_id for u in self._units.values()):
                raise ValueError(f"Duplicate unit identifier {unit.unit_id}")
            self._units[unit.id] = unit.model_copy(deep=True)
        return unit.id

    def get_unit(self, unit_pk: str) -> Optional[Unit]:
        with self._lock:
            unit = self._units.get(unit_pk)
            return unit.model_copy(deep=True) if unit else None

    def find_unit_by_identifier(self, identifier: str) -> Optional[Unit]:
        with self._lock:
            for unit in self._units.values():
                if unit.unit_id == identifier:
                    return unit.model_copy(deep=True)
        return None

    def list_units(self, property_id: Optional[str] = None) -> list[Unit]:
        with self._lock:
            units = [
                u.model_copy(deep=True)
                for u in self._units.values()
                if property_id is None or u.property_id == property_id
            ]
        units.sort(key=lambda u: u.created_at, reverse=True)
        return units

    def list_available_units(self, sort_by_identifier: bool = True) -> list[Unit]:
        with self._lock:
            units = [u.model_copy(deep=True) for u in self._units.values() if u.is_available]
        if sort_by_identifier:
            units.sort(key=lambda u: u.unit_id)
        return units

    def update_unit_availability(self, unit_pk: str, is_available: bool) -> None:
        with self._lock:
            unit = self._units.get(unit_pk)
            if unit is None:
                raise KeyError(f"Unit {unit_pk} not found")
            unit.is_available = is_available

    # tenants

    def create_tenant(self, tenant: Tenant) -> str:
        with self._lock:
            if any(t.tenant_id == tenant.tenant_id for t in self._tenants.values()):
                raise ValueError(f"Duplicate tenant identifier {tenant.tenant_id}")
            self._tenants[tenant.id] = tenant.model_copy(deep=True)
        return tenant.id

    def get_tenant(self, tenant_pk: str) -> Optional[Tenant]:
        with self._lock:
            tenant = self._tenants.get(tenant_pk)
            return tenant.model_copy(deep=True) if tenant else None

    def find_tenant_by_identifier(self, identifier: str) -> Optional[Tenant]:
        with self._lock:
            for tenant in self._tenants.values():
                if tenant.tenant_id == identifier:
                    return tenant.model_copy(deep=True)
        return None

    def list_tenants(self) -> list[Tenant]:
        with self._lock:
            tenants = [t.model_copy(deep=True) for t in self._tenants.values()]
        tenants.sort(key=lambda t: t.created_at, reverse=True)
        return tenants
