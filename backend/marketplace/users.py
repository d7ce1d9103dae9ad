"""
User directory use cases for the admin panel: look up and update the account
records behind growers and dispensaries.

Only `name`, `email` and `role` are editable. Roles go through
`normalize_role`, so `"GROWER"` is stored as `grower` and unknown roles are
rejected. Users are never deleted here: removing one would take the grower or
dispensary profile with it.

Framework-agnostic: callers (web adapters) translate the exceptions to HTTP.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from backend.identity_access.domain import ALLOWED_ROLES, normalize_role

logger = logging.getLogger("phenofarm.marketplace.users")


class UserError(Exception):
    """Base class for user management failures."""


class UserNotFound(UserError):
    """The referenced user does not exist."""


class InvalidUserUpdate(UserError):
    """The requested change is not acceptable (empty name, bad email, unknown role)."""


class DuplicateEmail(UserError):
    """Another user already has the requested email address."""


def _clean_email(value: str) -> str:
    email = value.strip()
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or " " in email:
        raise InvalidUserUpdate("email must be a valid address")
    return email


def get_user(repo, user_id: str) -> Dict[str, Any]:
    user = repo.get_user(user_id)
    if user is None:
        raise UserNotFound("user_not_found")
    return user


def update_user(
    repo,
    user_id: str,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
) -> Dict[str, Any]:
    """Apply the given changes and return the updated user.

    Fields left as None are not touched; with no changes at all the current
    record is returned unchanged.
    """
    changes: Dict[str, str] = {}
    if name is not None:
        cleaned = name.strip()
        if not cleaned:
            raise InvalidUserUpdate("name must not be empty")
        changes["name"] = cleaned
    if email is not None:
        changes["email"] = _clean_email(email)
    if role is not None:
        canonical = normalize_role(role)
        if canonical is None:
            raise InvalidUserUpdate(f"role must be one of {', '.join(sorted(ALLOWED_ROLES))}")
        changes["role"] = canonical
    if changes:
        if not repo.update_user(user_id, **changes):
            raise UserNotFound("user_not_found")
        logger.info("User updated id_tail=%s fields=%s", user_id[-6:], ",".join(sorted(changes)))
    return get_user(repo, user_id)


__all__ = [
    "UserError",
    "UserNotFound",
    "InvalidUserUpdate",
    "DuplicateEmail",
    "get_user",
    "update_user",
]
