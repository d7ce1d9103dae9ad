"""
Configuration and startup security checks for PhenoFarm.

Why: The admin surface flips a trust flag that other marketplace participants
rely on. A production process must never run against the in-memory stores or
an unencrypted database link.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def is_prod_like() -> bool:
    return _is_prod_like(os.getenv("PHENOFARM_ENV", "dev"))


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - DATABASE_URL must be set (the marketplace has no durable fallback).
    - DATABASE_URL must not explicitly disable TLS.
    - Sessions and the marketplace repo must be DB-backed.
    """

    env = os.getenv("PHENOFARM_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Database must be configured
    dsn = (os.getenv("DATABASE_URL") or os.getenv("SUPABASE_DB_URL") or "").strip()
    if not dsn:
        raise SystemExit("Refusing to start: DATABASE_URL is unset in production.")

    # 2) Postgres TLS: basic guard to avoid explicit disable
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    # 3) In-memory stores lose state on restart and are per-process
    sessions_backend = (os.getenv("SESSIONS_BACKEND", "memory") or "").strip().lower()
    if sessions_backend != "db":
        raise SystemExit("Refusing to start: SESSIONS_BACKEND=db is mandatory in production/staging.")

    repo_mode = (os.getenv("MARKETPLACE_REPO", "auto") or "").strip().lower()
    if repo_mode == "memory":
        raise SystemExit("Refusing to start: MARKETPLACE_REPO=memory is not allowed in production/staging.")
