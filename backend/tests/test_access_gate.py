"""Authorization gate: pure decision plus the FastAPI adapter."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from backend.identity_access.access import AccessDecision, check_access, require_role
from backend.identity_access.domain import ALLOWED_ROLES, normalize_role


def _request(user):
    return SimpleNamespace(state=SimpleNamespace(user=user))


@pytest.mark.parametrize(
    "user,required,expected",
    [
        (None, "admin", AccessDecision.UNAUTHENTICATED),
        ({}, "admin", AccessDecision.UNAUTHENTICATED),
        ({"sub": "u1", "role": "grower"}, "admin", AccessDecision.FORBIDDEN),
        ({"sub": "u1"}, "admin", AccessDecision.FORBIDDEN),
        ({"sub": "u1", "role": "superuser"}, "admin", AccessDecision.FORBIDDEN),
        ({"sub": "u1", "role": "admin"}, "admin", AccessDecision.ADMITTED),
        ({"sub": "u1", "role": "ADMIN"}, "admin", AccessDecision.ADMITTED),
        ({"sub": "u1", "role": "grower"}, "GROWER", AccessDecision.ADMITTED),
        ({"sub": "u1", "role": "admin"}, "grower", AccessDecision.FORBIDDEN),
    ],
)
def test_check_access_matrix(user, required, expected):
    assert check_access(user, required) is expected


def test_normalize_role():
    assert normalize_role(" Dispensary ") == "dispensary"
    assert normalize_role("owner") is None
    assert normalize_role(None) is None
    assert ALLOWED_ROLES == frozenset({"admin", "grower", "dispensary"})


def test_require_role_admits_and_returns_user():
    user = {"sub": "u1", "role": "admin"}
    got, error = require_role(_request(user), "admin")
    assert got is user
    assert error is None


def test_require_role_unauthenticated_is_401():
    got, error = require_role(_request(None), "grower")
    assert got is None
    assert error.status_code == 401
    assert error.body == b'{"error":"unauthenticated"}'
    assert error.headers["cache-control"] == "private, no-store"


def test_require_role_forbidden_status_is_configurable():
    user = {"sub": "u1", "role": "grower"}
    _, default_error = require_role(_request(user), "admin")
    _, admin_error = require_role(_request(user), "admin", forbidden_status=401, forbidden_error="unauthorized")
    assert default_error.status_code == 403
    assert admin_error.status_code == 401
    assert admin_error.body == b'{"error":"unauthorized"}'
