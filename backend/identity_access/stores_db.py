"""
Database-backed SessionStore for production use (Postgres).

Why: In-memory sessions are not durable and do not scale across instances. This
store persists sessions in Postgres while keeping the cookie opaque and
PII-minimal (no email stored).

Security:
- Only the opaque `session_id` is set in the cookie; all user context stays server-side.
- Session ids are generated in-process with `secrets`, never by the database.

Note: Connections are borrowed from the process-wide pool
(`backend.marketplace.db`). The store is selected only via
`SESSIONS_BACKEND=db`; tests use the in-memory store.
"""
from __future__ import annotations

from typing import Optional
import re
import secrets
import time

from backend.marketplace import db as _db

from .domain import normalize_role
from .stores import SessionRecord


def _now() -> int:
    return int(time.time())


_TABLE_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$')


class DBSessionStore:
    """Postgres-backed session store.

    Parameters
    ----------
    pool:
        Optional connection pool. Defaults to the process-wide pool.
    table:
        Fully qualified table name. Defaults to `public.app_sessions`.
    """

    def __init__(self, pool=None, table: str = "public.app_sessions") -> None:
        # Validate table identifier early (defense-in-depth)
        if not _TABLE_RE.match(table or ""):
            raise ValueError("Invalid table name")
        self._pool = pool
        self._table = table

    def _connection(self):
        pool = self._pool if self._pool is not None else _db.get_pool()
        return pool.connection()

    def create(
        self,
        *,
        sub: str,
        role: str,
        name: str = "",
        grower_id: Optional[str] = None,
        dispensary_id: Optional[str] = None,
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        canonical = normalize_role(role) or str(role or "")
        sid = secrets.token_urlsafe(24)
        expires_at = _now() + ttl_seconds
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"insert into {self._table} (session_id, sub, role, name, grower_id, dispensary_id, expires_at) "
                    f"values (%s, %s, %s, %s, %s, %s, to_timestamp(%s))",
                    (sid, sub, canonical, name, grower_id, dispensary_id, expires_at),
                )
        return SessionRecord(
            session_id=sid,
            sub=sub,
            role=canonical,
            name=name,
            grower_id=grower_id,
            dispensary_id=dispensary_id,
            expires_at=expires_at,
        )

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select session_id, sub, role, name, grower_id, dispensary_id, "
                    f"extract(epoch from expires_at)::bigint "
                    f"from {self._table} where session_id = %s and expires_at > now()",
                    (session_id,),
                )
                row = cur.fetchone()
        if not row:
            return None
        return SessionRecord(
            session_id=row[0],
            sub=row[1],
            role=row[2],
            name=row[3] or "",
            grower_id=row[4],
            dispensary_id=row[5],
            expires_at=int(row[6]) if row[6] is not None else None,
        )

    def delete(self, session_id: str) -> None:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"delete from {self._table} where session_id = %s", (session_id,))
