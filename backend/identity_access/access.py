"""
Authorization gate: admit or reject an operation based on the session principal.

Why:
    Every protected route used to branch inline on `role != X`. Centralizing the
    policy in one pure function keeps the rule identical across routes and
    makes it testable without a web stack.

Design:
    `check_access(user, required_role)` is a pure predicate returning an
    `AccessDecision`. `require_role(request, ...)` adapts it to FastAPI by
    reading `request.state.user` (set by the session middleware) and returning
    `(user, error_response)`, mirroring the other route guards.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from .domain import normalize_role


class AccessDecision(str, Enum):
    ADMITTED = "admitted"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


def check_access(user: Optional[Mapping[str, Any]], required_role: str) -> AccessDecision:
    """Evaluate the role claim of `user` against `required_role`.

    - No principal (no session) -> UNAUTHENTICATED
    - Role claim missing or different -> FORBIDDEN
    - Otherwise -> ADMITTED
    """
    if not user:
        return AccessDecision.UNAUTHENTICATED
    role = normalize_role(user.get("role"))
    if role is None or role != normalize_role(required_role):
        return AccessDecision.FORBIDDEN
    return AccessDecision.ADMITTED


def _private_no_store() -> dict:
    return {"Cache-Control": "private, no-store"}


def require_role(
    request: Request,
    required_role: str,
    *,
    forbidden_status: int = 403,
    forbidden_error: str = "forbidden",
    unauthenticated_error: str = "unauthenticated",
) -> Tuple[Optional[dict], Optional[JSONResponse]]:
    """Return (user, error_response) for the role required by a route.

    Admin endpoints report a wrong role as 401 (`forbidden_status=401`), the
    grower API reports it as 403.
    """
    user = getattr(request.state, "user", None)
    decision = check_access(user, required_role)
    if decision is AccessDecision.ADMITTED:
        return user, None
    if decision is AccessDecision.UNAUTHENTICATED:
        return None, JSONResponse({"error": unauthenticated_error}, status_code=401, headers=_private_no_store())
    return None, JSONResponse({"error": forbidden_error}, status_code=forbidden_status, headers=_private_no_store())


__all__ = ["AccessDecision", "check_access", "require_role"]
