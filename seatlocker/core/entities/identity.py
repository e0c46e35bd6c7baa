from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Identity:
    """Externally authenticated user reference."""
    external_id: str
    display_name: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class Profile:
    """Backend-stored user attributes, keyed by Identity.external_id."""
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
