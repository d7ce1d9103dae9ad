"PhenoFarm marketplace admin"
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from backend.identity_access.domain import ROLE_ADMIN
from backend.identity_access.stores import SessionStore
from backend.web import config as _cfg
from backend.web.components import Card, Layout


def _under_pytest() -> bool:
    return "pytest" in sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via PHENOFARM_ENABLE_DOTENV (default true
      outside pytest).
    """
    if _under_pytest():
        return False
    flag = (os.getenv("PHENOFARM_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------


class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("PHENOFARM_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env


logger = logging.getLogger("phenofarm.identity_access")
SETTINGS = AuthSettings()
SESSION_COOKIE_NAME = "phenofarm_session"

app = FastAPI(title="PhenoFarm", description="Regulated grower/dispensary marketplace", version="0.1.0")

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from backend.web.routes.admin import admin_router  # noqa: E402
from backend.web.routes.admin_api import admin_api_router  # noqa: E402
from backend.web.routes.auth import auth_router  # noqa: E402
from backend.web.routes.dispensaries import dispensaries_router  # noqa: E402
from backend.web.routes.operations import operations_router  # noqa: E402

app.include_router(auth_router)
app.include_router(operations_router)
app.include_router(admin_router)
app.include_router(admin_api_router)
app.include_router(dispensaries_router)

# --- Session Store ----------------------------------------------------------------

if (not _under_pytest()) and os.getenv("SESSIONS_BACKEND", "memory").lower() == "db":
    from backend.identity_access.stores_db import DBSessionStore

    SESSION_STORE = DBSessionStore()
else:
    SESSION_STORE = SessionStore()

# --- Auth Middleware ------------------------------------------------------------


def _login_url() -> str:
    return os.getenv("PHENOFARM_LOGIN_URL", "/auth/login")


def _is_public_path(path: str) -> bool:
    return path.startswith(("/auth/", "/static/")) or path in ("/", "/health", "/favicon.ico")


def _session_user(request: Request) -> dict | None:
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if not sid:
        return None
    try:
        rec = SESSION_STORE.get(sid)
    except Exception as exc:
        logger.warning("Session store get failed: %s", exc.__class__.__name__)
        return None
    if not rec:
        return None
    return {
        "sub": rec.sub,
        "name": rec.name,
        "role": rec.role,
        "grower_id": rec.grower_id,
        "dispensary_id": rec.dispensary_id,
    }


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    user = _session_user(request)
    request.state.user = user
    if user or _is_public_path(path):
        return await call_next(request)

    # Browsers navigating get the login page; API calls and form posts get 401.
    if path.startswith("/api/") or request.method not in ("GET", "HEAD"):
        headers = {"Cache-Control": "private, no-store", "Vary": "Origin"}
        return JSONResponse({"error": "unauthenticated"}, status_code=401, headers=headers)
    return RedirectResponse(url=_login_url(), status_code=302)


# --- Security Headers Middleware ----------------------------------------------


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if SETTINGS.environment == "prod":
        # Harden CSP in production: no inline scripts or styles.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if SETTINGS.environment == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Pages ------------------------------------------------------------------------


def _layout_response(request: Request, layout: Layout, *, status_code: int = 200) -> HTMLResponse:
    """Render a Layout; personalized pages are never cached."""
    response = HTMLResponse(content=layout.render(), status_code=status_code)
    if getattr(request.state, "user", None):
        response.headers["Cache-Control"] = "private, no-store"
    return response


@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    user = getattr(request.state, "user", None)
    content = """
    <div class="container">
        <h1>PhenoFarm</h1>
        <p>A marketplace connecting licensed growers with licensed dispensaries.</p>
    </div>
    """
    layout = Layout(title="Home", content=content, user=user, current_path=request.url.path)
    return _layout_response(request, layout)


@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Role landing page; also the target for wrong-role admin page visits."""
    user = getattr(request.state, "user", None) or {}
    if user.get("role") == ROLE_ADMIN:
        return RedirectResponse(url="/admin", status_code=302)
    name = user.get("name") or "there"
    card = Card(
        f"<p>Welcome back, {Layout.escape(name)}.</p>",
        header="Dashboard",
    )
    content = f'<div class="container"><h1>Dashboard</h1>{card.render()}</div>'
    layout = Layout(title="Dashboard", content=content, user=user, current_path=request.url.path)
    return _layout_response(request, layout)


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.web.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=SETTINGS.environment == "dev",
    )
