"""
User management use cases without a web stack.

Roles are normalized before they are stored, edits are validated, and a
missing user surfaces as `UserNotFound` without touching storage.
"""
from __future__ import annotations

import pytest

from backend.marketplace.repo_memory import InMemoryMarketplaceRepo
from backend.marketplace.users import (
    DuplicateEmail,
    InvalidUserUpdate,
    UserNotFound,
    get_user,
    update_user,
)


@pytest.fixture
def users_repo() -> InMemoryMarketplaceRepo:
    repo = InMemoryMarketplaceRepo()
    repo.add_user(id="u1", email="john@greenvalley.example", name="John Green", role="grower")
    repo.add_user(id="u2", email="jane@harbor.example", name="Jane Harbor", role="dispensary")
    repo.add_grower(id="g1", business_name="Green Valley Farms", is_verified=True, user_id="u1")
    return repo


def test_get_user_includes_owned_profile(users_repo):
    user = get_user(users_repo, "u1")
    assert user["grower"] == {
        "id": "g1",
        "businessName": "Green Valley Farms",
        "licenseNumber": None,
        "isVerified": True,
    }
    assert user["dispensary"] is None


def test_get_unknown_user_raises():
    with pytest.raises(UserNotFound):
        get_user(InMemoryMarketplaceRepo(), "nope")


def test_role_is_normalized_before_storing(users_repo):
    user = update_user(users_repo, "u1", role=" ADMIN ")
    assert user["role"] == "admin"
    assert users_repo.users["u1"].role == "admin"


@pytest.mark.parametrize("role", ["owner", "", "Admins"])
def test_unknown_role_is_rejected_and_nothing_changes(users_repo, role):
    with pytest.raises(InvalidUserUpdate):
        update_user(users_repo, "u1", role=role)
    assert users_repo.users["u1"].role == "grower"


@pytest.mark.parametrize("email", ["no-at-sign", "@example.com", "john@", "jo hn@example.com"])
def test_invalid_email_is_rejected(users_repo, email):
    with pytest.raises(InvalidUserUpdate):
        update_user(users_repo, "u1", email=email)
    assert users_repo.users["u1"].email == "john@greenvalley.example"


def test_blank_name_is_rejected(users_repo):
    with pytest.raises(InvalidUserUpdate):
        update_user(users_repo, "u1", name="   ")


def test_name_and_email_are_trimmed(users_repo):
    user = update_user(users_repo, "u1", name="  John G.  ", email=" john.g@greenvalley.example ")
    assert user["name"] == "John G."
    assert user["email"] == "john.g@greenvalley.example"


def test_email_of_another_user_is_a_duplicate(users_repo):
    with pytest.raises(DuplicateEmail):
        update_user(users_repo, "u1", email="jane@harbor.example")
    assert users_repo.users["u1"].email == "john@greenvalley.example"


def test_keeping_own_email_is_not_a_duplicate(users_repo):
    user = update_user(users_repo, "u1", email="john@greenvalley.example")
    assert user["email"] == "john@greenvalley.example"


def test_update_unknown_user_raises():
    with pytest.raises(UserNotFound):
        update_user(InMemoryMarketplaceRepo(), "nope", name="Someone")


def test_no_changes_returns_current_record(users_repo):
    before = users_repo.users["u2"].updated_at
    user = update_user(users_repo, "u2")
    assert user["name"] == "Jane Harbor"
    assert users_repo.users["u2"].updated_at == before


def test_list_users_filters_by_role_and_search_literally(users_repo):
    users_repo.add_user(id="u3", email="ops_team@phenofarm.example", name="Ops", role="admin")
    assert [u["id"] for u in users_repo.list_users(role="dispensary")] == ["u2"]
    assert [u["id"] for u in users_repo.list_users(search="HARBOR")] == ["u2"]
    assert [u["id"] for u in users_repo.list_users(search="_")] == ["u3"]
