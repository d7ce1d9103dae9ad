"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and reset the process-wide
singletons (marketplace repo, session store, settings override) so tests do
not leak state into each other.
"""
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` and `utils.*` are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven behavior deterministic: dev env, memory backends, no proxy trust."""
    for var in (
        "PHENOFARM_ENV",
        "PHENOFARM_TRUST_PROXY",
        "PHENOFARM_LOGIN_URL",
        "SESSIONS_BACKEND",
        "MARKETPLACE_REPO",
        "DATABASE_URL",
        "SUPABASE_DB_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_marketplace_repo():
    """Start each test with an empty in-memory marketplace repo."""
    from backend.marketplace.repo_memory import InMemoryMarketplaceRepo
    from backend.web import repo_wiring

    repo_wiring.set_repo(InMemoryMarketplaceRepo())
    yield
    repo_wiring.set_repo(None)


@pytest.fixture(autouse=True)
def _reset_session_store_and_settings(monkeypatch: pytest.MonkeyPatch):
    """Fresh in-memory SESSION_STORE and no environment override per test."""
    from backend.identity_access.stores import SessionStore
    from backend.web import main

    monkeypatch.setattr(main, "SESSION_STORE", SessionStore(), raising=False)
    main.SETTINGS.override_environment(None)
    yield
    main.SETTINGS.override_environment(None)


@pytest.fixture
def repo():
    """The in-memory repo wired for the current test."""
    from backend.web import repo_wiring

    return repo_wiring.get_repo()
