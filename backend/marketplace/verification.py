"""
Verification use cases: toggle or set the `is_verified` flag of growers and
dispensaries.

The toggle reads only the current flag, then writes its negation as a
conditional update on the value it read (compare-and-swap). If a concurrent
toggle wins in between, the update matches no row; the flag is re-read and the
swap retried, so N successful toggles net out to N flips. A toggle that keeps
losing for `MAX_TOGGLE_ATTEMPTS` rounds raises `ConflictError` and writes nothing.
A row that disappears between read and write yields `NotFound`.

Framework-agnostic: callers (web adapters) translate the exceptions to HTTP.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("phenofarm.marketplace.verification")

MAX_TOGGLE_ATTEMPTS = 3


class VerificationError(Exception):
    """Base class for verification use-case failures."""


class NotFound(VerificationError):
    """The referenced grower or dispensary does not exist."""


class ConflictError(VerificationError):
    """The compare-and-swap kept losing against concurrent writers."""


def _toggle(
    entity_id: str,
    get_flag: Callable[[str], Optional[bool]],
    set_flag: Callable[..., bool],
    *,
    kind: str,
) -> bool:
    for attempt in range(1, MAX_TOGGLE_ATTEMPTS + 1):
        current = get_flag(entity_id)
        if current is None:
            raise NotFound(f"{kind}_not_found")
        new_value = not current
        if set_flag(entity_id, new_value, expected=current):
            logger.info("%s verification toggled id_tail=%s verified=%s", kind, entity_id[-6:], new_value)
            return new_value
        logger.info("%s verification swap lost id_tail=%s attempt=%s", kind, entity_id[-6:], attempt)
    raise ConflictError(f"{kind}_toggle_conflict")


def toggle_grower_verification(repo, grower_id: str) -> bool:
    """Flip a grower's verification flag and return the new value."""
    return _toggle(
        grower_id,
        repo.get_grower_verification,
        repo.set_grower_verification,
        kind="grower",
    )


def toggle_dispensary_verification(repo, dispensary_id: str) -> bool:
    """Flip a dispensary's verification flag and return the new value."""
    return _toggle(
        dispensary_id,
        repo.get_dispensary_verification,
        repo.set_dispensary_verification,
        kind="dispensary",
    )


def set_grower_verification(repo, grower_id: str, value: bool) -> Dict[str, Any]:
    """Set the flag to an explicit value; returns the updated grower."""
    if not repo.set_grower_verification(grower_id, bool(value)):
        raise NotFound("grower_not_found")
    grower = repo.get_grower(grower_id)
    if grower is None:
        raise NotFound("grower_not_found")
    return grower


__all__ = [
    "MAX_TOGGLE_ATTEMPTS",
    "VerificationError",
    "NotFound",
    "ConflictError",
    "toggle_grower_verification",
    "toggle_dispensary_verification",
    "set_grower_verification",
]
