"""
Admin SSR routes: overview, grower and dispensary listings, verification toggles,
user management.

Why:
    Admins vouch for marketplace participants by flipping their `is_verified`
    flag. The pages show who is pending; each row carries a small form that
    posts to the toggle endpoint, which redirects back to the listing.

Permissions:
    Every route requires the `admin` role. Pages send other roles to
    `/dashboard`; toggle and role posts answer 401 for both a missing session and a
    wrong role, and 403 for cross-origin posts.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from backend.identity_access.access import AccessDecision, check_access, require_role
from backend.identity_access.domain import ALLOWED_ROLES, ROLE_ADMIN, ROLE_DISPENSARY, ROLE_GROWER, normalize_role
from backend.marketplace.users import InvalidUserUpdate, UserNotFound, update_user
from backend.marketplace.verification import (
    ConflictError,
    NotFound,
    toggle_dispensary_verification,
    toggle_grower_verification,
)
from backend.web.components import Badge, Card, EmptyState, Layout, StatCard, verification_badge
from backend.web.repo_wiring import get_repo
from backend.web.routes.security import _is_same_origin

admin_router = APIRouter(tags=["Admin"])
logger = logging.getLogger("phenofarm.web.admin")

_PRIVATE = {"Cache-Control": "private, no-store"}


def _json_error(error: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": error}, status_code=status_code, headers=_PRIVATE)


def _require_admin_page(request: Request):
    """Page guard: (user, None) for admins, otherwise (None, redirect)."""
    user = getattr(request.state, "user", None)
    decision = check_access(user, ROLE_ADMIN)
    if decision is AccessDecision.ADMITTED:
        return user, None
    if decision is AccessDecision.UNAUTHENTICATED:
        return None, RedirectResponse(url=os.getenv("PHENOFARM_LOGIN_URL", "/auth/login"), status_code=302)
    return None, RedirectResponse(url="/dashboard", status_code=302)


def _page(request: Request, user: dict, title: str, content: str, *, status_code: int = 200) -> HTMLResponse:
    layout = Layout(title=title, content=content, user=user, current_path=request.url.path)
    return HTMLResponse(content=layout.render(), status_code=status_code, headers=_PRIVATE)


def _storage_error_page(request: Request, user: dict, title: str) -> HTMLResponse:
    card = Card('<p class="text-error">The marketplace data could not be loaded. Please try again.</p>')
    content = f'<div class="container"><h1>{Layout.escape(title)}</h1>{card.render()}</div>'
    return _page(request, user, title, content, status_code=500)


def _verify_form(action: str, is_verified: bool) -> str:
    label = "Unverify" if is_verified else "Verify"
    btn_class = "btn btn-secondary btn-sm" if is_verified else "btn btn-primary btn-sm"
    return (
        f'<form method="post" action="{Layout.escape(action)}" class="inline-form">'
        f'<button type="submit" class="{btn_class}">{label}</button>'
        "</form>"
    )


def _location(entity: Dict[str, Any]) -> str:
    parts = [entity.get("city") or "", entity.get("state") or ""]
    return ", ".join(p for p in parts if p)


def _grower_rows(growers: List[Dict[str, Any]]) -> str:
    rows = []
    for g in growers:
        action = f"/admin/growers/{g['id']}/verify"
        rows.append(
            f'<tr id="grower-{Layout.escape(g["id"])}">'
            f'<td>{Layout.escape(g.get("businessName"))}</td>'
            f'<td>{Layout.escape(g.get("licenseNumber"))}</td>'
            f"<td>{Layout.escape(_location(g))}</td>"
            f'<td>{verification_badge(bool(g.get("isVerified"))).render()}</td>'
            f'<td>{_verify_form(action, bool(g.get("isVerified")))}</td>'
            "</tr>"
        )
    return (
        '<table class="table"><thead><tr>'
        "<th>Business</th><th>License</th><th>Location</th><th>Status</th><th></th>"
        f'</tr></thead><tbody>{"".join(rows)}</tbody></table>'
    )


def _grower_section(title: str, growers: List[Dict[str, Any]], *, empty_title: str, empty_description: str) -> str:
    if growers:
        body = _grower_rows(growers)
    else:
        body = EmptyState(empty_title, empty_description).render()
    return Card(body, header=f"{title} ({len(growers)})").render()


# --- Pages ------------------------------------------------------------------------


@admin_router.get("/admin", response_class=HTMLResponse)
async def admin_overview(request: Request):
    user, redirect = _require_admin_page(request)
    if redirect:
        return redirect
    try:
        stats = get_repo().count_stats()
    except Exception as exc:
        logger.warning("Admin stats failed: %s", exc.__class__.__name__)
        return _storage_error_page(request, user, "Admin")
    cards = "".join(
        [
            StatCard("Total growers", stats["totalGrowers"]).render(),
            StatCard("Verified growers", stats["verifiedGrowers"], tone="success").render(),
            StatCard("Pending growers", stats["pendingGrowers"], tone="warning").render(),
            StatCard("Total dispensaries", stats["totalDispensaries"]).render(),
            StatCard("Verified dispensaries", stats["verifiedDispensaries"], tone="success").render(),
            StatCard("Pending dispensaries", stats["pendingDispensaries"], tone="warning").render(),
        ]
    )
    content = f"""
    <div class="container">
        <h1>Admin Dashboard</h1>
        <div class="stat-grid">{cards}</div>
    </div>
    """
    return _page(request, user, "Admin", content)


@admin_router.get("/admin/growers", response_class=HTMLResponse)
async def admin_growers_page(request: Request, search: str | None = None):
    user, redirect = _require_admin_page(request)
    if redirect:
        return redirect
    try:
        growers = get_repo().list_growers(search=search or None)
    except Exception as exc:
        logger.warning("Admin grower listing failed: %s", exc.__class__.__name__)
        return _storage_error_page(request, user, "Growers")
    pending = [g for g in growers if not g.get("isVerified")]
    verified = [g for g in growers if g.get("isVerified")]
    search_value = Layout.escape(search or "")
    pending_html = _grower_section(
        "Pending", pending, empty_title="No pending growers", empty_description="Every grower has been reviewed."
    )
    verified_html = _grower_section(
        "Verified", verified, empty_title="No verified growers", empty_description="Verified growers will appear here."
    )
    content = f"""
    <div class="container">
        <h1>Grower Verification</h1>
        <form method="get" action="/admin/growers" class="search-form" role="search">
            <input type="search" name="search" value="{search_value}" placeholder="Search by name, address or license" class="form-input">
            <button type="submit" class="btn btn-secondary">Search</button>
        </form>
        {pending_html}
        {verified_html}
    </div>
    """
    return _page(request, user, "Growers", content)


@admin_router.get("/admin/dispensaries", response_class=HTMLResponse)
async def admin_dispensaries_page(request: Request):
    user, redirect = _require_admin_page(request)
    if redirect:
        return redirect
    try:
        dispensaries = get_repo().list_dispensaries(limit=100)
    except Exception as exc:
        logger.warning("Admin dispensary listing failed: %s", exc.__class__.__name__)
        return _storage_error_page(request, user, "Dispensaries")

    if not dispensaries:
        body = EmptyState("No dispensaries yet", "Dispensaries appear here once they register.").render()
    else:
        rows = []
        for d in dispensaries:
            action = f"/admin/dispensaries/{d['id']}/verify"
            rows.append(
                f'<tr id="dispensary-{Layout.escape(d["id"])}">'
                f'<td>{Layout.escape(d.get("businessName"))}</td>'
                f'<td>{Layout.escape(d.get("licenseNumber"))}</td>'
                f"<td>{Layout.escape(_location(d))}</td>"
                f'<td>{verification_badge(bool(d.get("isVerified"))).render()}</td>'
                f'<td>{_verify_form(action, bool(d.get("isVerified")))}</td>'
                "</tr>"
            )
        body = (
            '<table class="table"><thead><tr>'
            "<th>Business</th><th>License</th><th>Location</th><th>Status</th><th></th>"
            f'</tr></thead><tbody>{"".join(rows)}</tbody></table>'
        )
    card_html = Card(body, header=f"All dispensaries ({len(dispensaries)})").render()
    content = f"""
    <div class="container">
        <h1>Dispensaries</h1>
        {card_html}
    </div>
    """
    return _page(request, user, "Dispensaries", content)


_ROLE_BADGE = {ROLE_ADMIN: "secondary", ROLE_GROWER: "success", ROLE_DISPENSARY: "info"}


def _role_form(user_id: str, current_role: str) -> str:
    options = "".join(
        f'<option value="{r}"{" selected" if r == current_role else ""}>{r.capitalize()}</option>'
        for r in sorted(ALLOWED_ROLES)
    )
    action = Layout.escape(f"/admin/users/{user_id}/role")
    return (
        f'<form method="post" action="{action}" class="inline-form">'
        f'<select name="role" class="form-input" aria-label="Role">{options}</select>'
        '<button type="submit" class="btn btn-secondary btn-sm">Save</button>'
        "</form>"
    )


def _business_cell(u: Dict[str, Any]) -> str:
    profile = u.get("grower") or u.get("dispensary")
    if not profile:
        return ""
    badge = verification_badge(bool(profile.get("isVerified"))).render()
    return f'{Layout.escape(profile.get("businessName"))} {badge}'


def _user_rows(users: List[Dict[str, Any]]) -> str:
    rows = []
    for u in users:
        role = u.get("role") or ""
        rows.append(
            f'<tr id="user-{Layout.escape(u["id"])}">'
            f'<td><div class="user-name">{Layout.escape(u.get("name"))}</div>'
            f'<div class="text-muted">{Layout.escape(u.get("email"))}</div></td>'
            f'<td>{Badge(role, _ROLE_BADGE.get(role, "default")).render()}</td>'
            f"<td>{_business_cell(u)}</td>"
            f'<td>{Layout.escape((u.get("createdAt") or "")[:10])}</td>'
            f'<td>{_role_form(u["id"], role)}</td>'
            "</tr>"
        )
    return (
        '<table class="table"><thead><tr>'
        "<th>User</th><th>Role</th><th>Business</th><th>Joined</th><th></th>"
        f'</tr></thead><tbody>{"".join(rows)}</tbody></table>'
    )


@admin_router.get("/admin/users", response_class=HTMLResponse)
async def admin_users_page(request: Request, search: str | None = None, role: str | None = None):
    user, redirect = _require_admin_page(request)
    if redirect:
        return redirect
    role_filter = normalize_role(role)
    needle = (search or "").strip() or None
    try:
        everyone = get_repo().list_users()
        users = get_repo().list_users(role=role_filter, search=needle) if (role_filter or needle) else everyone
    except Exception as exc:
        logger.warning("Admin user listing failed: %s", exc.__class__.__name__)
        return _storage_error_page(request, user, "Users")

    by_role = {r: sum(1 for u in everyone if u.get("role") == r) for r in ALLOWED_ROLES}
    cards = "".join(
        [
            StatCard("Total users", len(everyone)).render(),
            StatCard("Admins", by_role[ROLE_ADMIN]).render(),
            StatCard("Growers", by_role[ROLE_GROWER], tone="success").render(),
            StatCard("Dispensaries", by_role[ROLE_DISPENSARY], tone="success").render(),
        ]
    )
    if users:
        body = _user_rows(users)
    else:
        body = EmptyState("No users found", "Try a different search or role filter.").render()
    card_html = Card(body, header=f"Users ({len(users)})").render()
    role_options = '<option value="">All roles</option>' + "".join(
        f'<option value="{r}"{" selected" if r == role_filter else ""}>{r.capitalize()}</option>'
        for r in sorted(ALLOWED_ROLES)
    )
    search_value = Layout.escape(search or "")
    content = f"""
    <div class="container">
        <h1>User Management</h1>
        <div class="stat-grid">{cards}</div>
        <form method="get" action="/admin/users" class="search-form" role="search">
            <input type="search" name="search" value="{search_value}" placeholder="Search by name or email" class="form-input">
            <select name="role" class="form-input" aria-label="Role filter">{role_options}</select>
            <button type="submit" class="btn btn-secondary">Filter</button>
        </form>
        {card_html}
    </div>
    """
    return _page(request, user, "Users", content)


# --- Verification toggles ---------------------------------------------------------


def _run_toggle(request: Request, entity_id: str, toggle, *, kind: str, redirect_to: str):
    _, error = require_role(
        request,
        ROLE_ADMIN,
        forbidden_status=401,
        forbidden_error="unauthorized",
        unauthenticated_error="unauthorized",
    )
    if error:
        return error
    if not _is_same_origin(request):
        return _json_error("csrf_violation", 403)
    try:
        toggle(get_repo(), entity_id)
    except NotFound:
        return _json_error("not_found", 404)
    except ConflictError:
        logger.warning("%s toggle conflict id_tail=%s", kind, entity_id[-6:])
        return _json_error("internal_error", 500)
    except Exception as exc:
        logger.warning("%s toggle failed id_tail=%s err=%s", kind, entity_id[-6:], exc.__class__.__name__)
        return _json_error("internal_error", 500)
    return RedirectResponse(url=redirect_to, status_code=303)


@admin_router.post("/admin/growers/{grower_id}/verify")
async def toggle_grower(request: Request, grower_id: str):
    """Flip a grower's verification flag and return to the grower listing."""
    return _run_toggle(request, grower_id, toggle_grower_verification, kind="grower", redirect_to="/admin/growers")


@admin_router.post("/admin/dispensaries/{dispensary_id}/verify")
async def toggle_dispensary(request: Request, dispensary_id: str):
    return _run_toggle(
        request,
        dispensary_id,
        toggle_dispensary_verification,
        kind="dispensary",
        redirect_to="/admin/dispensaries",
    )


@admin_router.post("/admin/users/{user_id}/role")
async def change_user_role(request: Request, user_id: str):
    """Change a user's role from the user management page; 303 back to it."""
    _, error = require_role(
        request,
        ROLE_ADMIN,
        forbidden_status=401,
        forbidden_error="unauthorized",
        unauthenticated_error="unauthorized",
    )
    if error:
        return error
    if not _is_same_origin(request):
        return _json_error("csrf_violation", 403)
    form = await request.form()
    try:
        update_user(get_repo(), user_id, role=str(form.get("role") or ""))
    except InvalidUserUpdate:
        return _json_error("invalid_role", 400)
    except UserNotFound:
        return _json_error("not_found", 404)
    except Exception as exc:
        logger.warning("User role change failed id_tail=%s err=%s", user_id[-6:], exc.__class__.__name__)
        return _json_error("internal_error", 500)
    return RedirectResponse(url="/admin/users", status_code=303)
