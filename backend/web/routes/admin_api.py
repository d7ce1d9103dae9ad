"""
Admin JSON API: grower listing, explicit verification updates, marketplace stats
and user management.

Permissions:
    Caller must have the `admin` role; a missing session or a different role
    yields 401 `{"error": "unauthorized"}`.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError

from backend.identity_access.access import require_role
from backend.identity_access.domain import ROLE_ADMIN, normalize_role
from backend.marketplace.users import DuplicateEmail, InvalidUserUpdate, UserNotFound, get_user, update_user
from backend.marketplace.verification import NotFound, set_grower_verification
from backend.web.repo_wiring import get_repo

admin_api_router = APIRouter(tags=["Admin API"])
logger = logging.getLogger("phenofarm.web.admin")

_ALLOWED_STATUS = {"pending", "verified"}


class VerifyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    isVerified: StrictBool


class UserUpdatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[StrictStr] = None
    email: Optional[StrictStr] = None
    role: Optional[StrictStr] = None


def _json_private(body, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _require_admin(request: Request):
    return require_role(
        request,
        ROLE_ADMIN,
        forbidden_status=401,
        forbidden_error="unauthorized",
        unauthenticated_error="unauthorized",
    )


@admin_api_router.get("/api/admin/growers")
async def list_growers(request: Request, status: str | None = None, search: str | None = None):
    """List growers newest first, optionally filtered by `status` and `search`.

    Unknown `status` values are ignored (all growers are returned).
    """
    _, error = _require_admin(request)
    if error:
        return error
    status_filter = (status or "").strip().lower()
    try:
        growers = get_repo().list_growers(
            status=status_filter if status_filter in _ALLOWED_STATUS else None,
            search=(search or "").strip() or None,
        )
    except Exception as exc:
        logger.warning("Admin grower list failed: %s", exc.__class__.__name__)
        return _json_private({"error": "Failed to fetch growers"}, status_code=500)
    return _json_private({"growers": growers})


@admin_api_router.patch("/api/admin/growers/{grower_id}/verify")
async def update_grower_verification(request: Request, grower_id: str):
    """Set a grower's verification flag to the value in the body.

    Behavior:
        - 200 `{"success": true, "message": ..., "grower": {...}}`
        - 400 when `isVerified` is missing or not a boolean
        - 404 when the grower does not exist
    """
    _, error = _require_admin(request)
    if error:
        return error
    try:
        payload = VerifyPayload.model_validate(await request.json())
    except (ValueError, ValidationError):
        # json.JSONDecodeError is a ValueError
        return _json_private({"error": "isVerified must be a boolean"}, status_code=400)
    try:
        grower = set_grower_verification(get_repo(), grower_id, payload.isVerified)
    except NotFound:
        return _json_private({"error": "Grower not found"}, status_code=404)
    except Exception as exc:
        logger.warning("Grower verify failed id_tail=%s err=%s", grower_id[-6:], exc.__class__.__name__)
        return _json_private({"error": "Failed to update grower verification"}, status_code=500)
    verb = "verified" if payload.isVerified else "unverified"
    logger.info("Grower %s via API id_tail=%s", verb, grower_id[-6:])
    return _json_private({"success": True, "message": f"Grower {verb} successfully", "grower": grower})


@admin_api_router.get("/api/admin/stats")
async def marketplace_stats(request: Request):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        stats = get_repo().count_stats()
    except Exception as exc:
        logger.warning("Admin stats failed: %s", exc.__class__.__name__)
        return _json_private({"error": "Failed to fetch stats"}, status_code=500)
    return _json_private({"stats": stats})


# --- Users ------------------------------------------------------------------------


@admin_api_router.get("/api/admin/users")
async def list_users(request: Request, role: str | None = None, search: str | None = None):
    """List users newest first with their grower/dispensary profile, if any.

    `role` accepts any spelling of a known role (`GROWER`, `grower`); `ALL` or
    unknown values return every user.
    """
    _, error = _require_admin(request)
    if error:
        return error
    try:
        users = get_repo().list_users(role=normalize_role(role), search=(search or "").strip() or None)
    except Exception as exc:
        logger.warning("Admin user list failed: %s", exc.__class__.__name__)
        return _json_private({"error": "Failed to fetch users"}, status_code=500)
    return _json_private({"users": users})


@admin_api_router.get("/api/admin/users/{user_id}")
async def get_user_detail(request: Request, user_id: str):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        user = get_user(get_repo(), user_id)
    except UserNotFound:
        return _json_private({"error": "User not found"}, status_code=404)
    except Exception as exc:
        logger.warning("Admin get user failed id_tail=%s err=%s", user_id[-6:], exc.__class__.__name__)
        return _json_private({"error": "Failed to fetch user"}, status_code=500)
    return _json_private({"user": user})


@admin_api_router.put("/api/admin/users/{user_id}")
async def update_user_detail(request: Request, user_id: str):
    """Update a user's name, email or role.

    Behavior:
        - 200 `{"success": true, "message": ..., "user": {...}}`
        - 400 for a malformed body, an empty name, an invalid email or an unknown role
        - 404 when the user does not exist
        - 409 when the email belongs to another user
    """
    _, error = _require_admin(request)
    if error:
        return error
    try:
        payload = UserUpdatePayload.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _json_private({"error": "name, email and role must be strings"}, status_code=400)
    try:
        user = update_user(get_repo(), user_id, name=payload.name, email=payload.email, role=payload.role)
    except InvalidUserUpdate as exc:
        return _json_private({"error": str(exc)}, status_code=400)
    except UserNotFound:
        return _json_private({"error": "User not found"}, status_code=404)
    except DuplicateEmail:
        return _json_private({"error": "Email already in use"}, status_code=409)
    except Exception as exc:
        logger.warning("Admin update user failed id_tail=%s err=%s", user_id[-6:], exc.__class__.__name__)
        return _json_private({"error": "Failed to update user"}, status_code=500)
    return _json_private({"success": True, "message": "User updated successfully", "user": user})
