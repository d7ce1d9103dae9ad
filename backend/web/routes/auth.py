"""
Authentication-related FastAPI routes (router-only module).

Sessions are created by the identity subsystem through `SessionStore.create`;
this app only ends them.

Notes:
    - This module imports `main` inside functions to reuse the shared session
      store and cookie name, so tests that swap `main.SESSION_STORE` are
      honored.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from backend.web.routes.security import _is_same_origin

auth_router = APIRouter(tags=["Auth"])
logger = logging.getLogger("phenofarm.web.auth")


@auth_router.post("/auth/logout")
async def logout(request: Request):
    """End the server-side session and clear the cookie; 303 to the start page.

    Cross-origin posts are refused with 403 and leave the session intact.
    """
    from backend.web import main

    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers={"Cache-Control": "private, no-store"})
    sid = request.cookies.get(main.SESSION_COOKIE_NAME)
    if sid:
        try:
            main.SESSION_STORE.delete(sid)
        except Exception as exc:
            # The cookie is cleared regardless; an orphaned row expires on its own.
            logger.warning("Session delete failed: %s", exc.__class__.__name__)
    resp = RedirectResponse(url="/", status_code=303)
    resp.headers["Cache-Control"] = "private, no-store"
    resp.delete_cookie(main.SESSION_COOKIE_NAME, path="/", secure=True, httponly=True, samesite="lax")
    return resp
