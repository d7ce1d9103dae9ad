"""
Wiring of the marketplace repository used by the web adapters.

Why:
    Admin and dispensary routes must share one repository instance, and tests
    must be able to swap it for an in-memory one. This module owns that
    instance and the selection logic.

Behavior:
    - MARKETPLACE_REPO=memory  -> in-memory repo (dev/tests).
    - MARKETPLACE_REPO=db      -> Postgres repo on the process-wide pool.
    - MARKETPLACE_REPO=auto (default) -> Postgres when DATABASE_URL is set,
      otherwise in-memory.
    The repo is built lazily on first access so importing the app never opens
    a database connection.
"""
from __future__ import annotations

import logging
import os

from backend.marketplace.repo_memory import InMemoryMarketplaceRepo

logger = logging.getLogger("phenofarm.web")

_REPO = None


def _build_default_repo():
    """Prefer the DB-backed repo when configured; fall back to in-memory otherwise."""
    mode = (os.getenv("MARKETPLACE_REPO", "auto") or "auto").strip().lower()
    if mode == "memory":
        return InMemoryMarketplaceRepo()
    has_dsn = bool((os.getenv("DATABASE_URL") or os.getenv("SUPABASE_DB_URL") or "").strip())
    if mode == "auto" and not has_dsn:
        logger.info("Marketplace repo: in-memory (no DATABASE_URL)")
        return InMemoryMarketplaceRepo()
    # Lazy import keeps psycopg out of memory-only paths.
    from backend.marketplace.repo_db import DBMarketplaceRepo

    logger.info("Marketplace repo: Postgres")
    return DBMarketplaceRepo()


def get_repo():
    global _REPO
    if _REPO is None:
        _REPO = _build_default_repo()
    return _REPO


def set_repo(repo) -> None:
    """Allow tests to swap the marketplace repository implementation."""
    global _REPO
    _REPO = repo


__all__ = ["get_repo", "set_repo"]
