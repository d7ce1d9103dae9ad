"""
Dispensary listing for growers.

Growers browse dispensaries to find buyers. The response is a fixed public
projection; license numbers, verification state and timestamps never leave
the server on this route.

Permissions:
    Caller must have the `grower` role (401 without session, 403 otherwise).
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from backend.identity_access.access import require_role
from backend.identity_access.domain import ROLE_GROWER
from backend.web.repo_wiring import get_repo

dispensaries_router = APIRouter(tags=["Dispensaries"])
logger = logging.getLogger("phenofarm.web.dispensaries")

PROJECTION_FIELDS = ("id", "businessName", "city", "state", "address")


@dispensaries_router.get("/api/dispensaries")
async def list_dispensaries(request: Request):
    _, error = require_role(request, ROLE_GROWER)
    if error:
        return error
    try:
        rows = get_repo().list_dispensaries_projection()
    except Exception as exc:
        logger.warning("Dispensary listing failed: %s", exc.__class__.__name__)
        return JSONResponse(
            {"error": "internal_error"}, status_code=500, headers={"Cache-Control": "private, no-store"}
        )
    body = [{key: row.get(key) for key in PROJECTION_FIELDS} for row in rows]
    return JSONResponse(body, headers={"Cache-Control": "private, no-store"})
