"""In-memory SessionStore semantics."""
from __future__ import annotations

from backend.identity_access.stores import SessionStore


def test_create_get_delete():
    store = SessionStore()
    rec = store.create(sub="u1", role="Admin", name="Ada")
    assert rec.role == "admin"
    assert store.get(rec.session_id) is rec
    store.delete(rec.session_id)
    assert store.get(rec.session_id) is None


def test_unknown_role_is_kept_verbatim_for_the_gate():
    rec = SessionStore().create(sub="u1", role="superuser")
    assert rec.role == "superuser"


def test_expired_session_is_evicted():
    store = SessionStore()
    rec = store.create(sub="u1", role="grower", ttl_seconds=-1)
    assert store.get(rec.session_id) is None
    assert store.get(rec.session_id) is None


def test_session_ids_are_unique():
    store = SessionStore()
    ids = {store.create(sub="u1", role="grower").session_id for _ in range(50)}
    assert len(ids) == 50
