"""
In-memory SessionStore for development and tests.

Why: Keep session data server-side and opaque to the client. Sessions are
created by the identity subsystem (login flow or the dev seed tool); the web
core only reads them. For production use `DBSessionStore` (stores_db.py).

Security: Cookies carry only an opaque session id. Session data stays server-side.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time

from .domain import normalize_role


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    sub: str
    role: str
    name: str = ""
    grower_id: Optional[str] = None
    dispensary_id: Optional[str] = None
    expires_at: Optional[int] = None


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

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
        # Unknown role claims are kept verbatim so the gate can reject them.
        canonical = normalize_role(role) or str(role or "")
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            sub=sub,
            role=canonical,
            name=name,
            grower_id=grower_id,
            dispensary_id=dispensary_id,
            expires_at=_now() + ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)
