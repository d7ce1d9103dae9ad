"""
Process-wide Postgres connection pool.

Why:
    Every request used to be free to open its own connection, which exhausts
    the database under load. The marketplace keeps exactly one
    `psycopg_pool.ConnectionPool` per process instead; it is created lazily on
    first use and handed out to every repository and session store.

Behavior:
    - `get_pool()` creates the pool once (guarded by a lock) and returns the
      same instance for the lifetime of the process.
    - `set_pool()` / `reset_pool()` replace or drop the handle. Both are
      refused in production-like environments; they exist for dev hot-reload
      and tests only.
    - Sizing is read from env: DB_POOL_MIN_SIZE (1), DB_POOL_MAX_SIZE (10),
      DB_POOL_TIMEOUT seconds (10).
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Optional

from psycopg_pool import ConnectionPool

logger = logging.getLogger("phenofarm.marketplace.db")

_POOL: Optional[Any] = None
_POOL_LOCK = threading.Lock()


def _is_prod_like(env: str) -> bool:
    return (env or "").strip().lower() in {"prod", "production", "stage", "staging"}


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got: {value}")
    return value


def database_url() -> str:
    """Resolve the DSN for the marketplace database."""
    for key in ("DATABASE_URL", "SUPABASE_DB_URL"):
        dsn = (os.getenv(key) or "").strip()
        if dsn:
            return dsn
    raise RuntimeError("DATABASE_URL is not set; cannot open the connection pool")


def _create_pool():
    min_size = _int_env("DB_POOL_MIN_SIZE", 1, minimum=0)
    max_size = _int_env("DB_POOL_MAX_SIZE", 10, minimum=1)
    if max_size < min_size:
        raise ValueError("DB_POOL_MAX_SIZE must be >= DB_POOL_MIN_SIZE")
    timeout = _int_env("DB_POOL_TIMEOUT", 10, minimum=1)
    pool = ConnectionPool(
        conninfo=database_url(),
        min_size=min_size,
        max_size=max_size,
        timeout=float(timeout),
        name="phenofarm",
        open=True,
    )
    logger.info("Opened connection pool (min=%s max=%s)", min_size, max_size)
    return pool


def get_pool():
    """Return the process-wide pool, creating it on first access."""
    global _POOL
    pool = _POOL
    if pool is not None:
        return pool
    with _POOL_LOCK:
        if _POOL is None:
            _POOL = _create_pool()
        return _POOL


def _guard_reassignment(action: str) -> None:
    if _is_prod_like(os.getenv("PHENOFARM_ENV", "dev")):
        raise RuntimeError(f"Refusing to {action} the connection pool in production")


def set_pool(pool) -> None:
    """Install an explicit pool (tests, dev reload). Not allowed in production."""
    global _POOL
    _guard_reassignment("replace")
    with _POOL_LOCK:
        _POOL = pool


def reset_pool() -> None:
    """Close and forget the current pool so the next access recreates it."""
    global _POOL
    _guard_reassignment("reset")
    with _POOL_LOCK:
        pool, _POOL = _POOL, None
    if pool is not None:
        try:
            pool.close()
        except Exception as exc:
            logger.warning("Closing connection pool failed: %s", exc.__class__.__name__)


def pool_is_open() -> bool:
    return _POOL is not None


__all__ = ["database_url", "get_pool", "set_pool", "reset_pool", "pool_is_open"]
