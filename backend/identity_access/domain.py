"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles to avoid drift between tools and web layer.
- The identity provider may emit upper-case role claims ("ADMIN"); the web
  layer only ever compares the normalized lower-case form.
"""

from __future__ import annotations

from typing import Optional

ROLE_ADMIN = "admin"
ROLE_GROWER = "grower"
ROLE_DISPENSARY = "dispensary"

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({ROLE_ADMIN, ROLE_GROWER, ROLE_DISPENSARY})


def normalize_role(value: object) -> Optional[str]:
    """Return the canonical lower-case role, or None for unknown claims."""
    if not isinstance(value, str):
        return None
    role = value.strip().lower()
    return role if role in ALLOWED_ROLES else None


__all__ = ["ALLOWED_ROLES", "ROLE_ADMIN", "ROLE_GROWER", "ROLE_DISPENSARY", "normalize_role"]
