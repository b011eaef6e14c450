from __future__ import annotations

import secrets
import string
from typing import Callable

_ALPHANUMERIC = string.ascii_uppercase + string.digits


def _generate(prefix: str) -> str:
    body = "".join(secrets.choice(_ALPHANUMERIC) for _ in range(4))
    return f"{prefix}{body}{secrets.choice(string.ascii_uppercase)}"


def generate_unit_id() -> str:
    """Unit identifier such as ``U7K2QB``."""
    return _generate("U")


def generate_tenant_id() -> str:
    """Tenant identifier such as ``T3M9ZC``."""
    return _generate("T")


def generate_unique(generate: Callable[[], str], exists: Callable[[str], bool], attempts: int = 5) -> str:
    for _ in range(attempts):
        candidate = generate()
        if not exists(candidate):
            return candidate
    raise RuntimeError(f"Could not generate a unique identifier after {attempts} attempts")
