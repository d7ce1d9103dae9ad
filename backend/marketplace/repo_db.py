"""
Postgres-backed repository for the marketplace (users, growers, dispensaries).

Design:
- Borrows connections from the process-wide pool (`marketplace.db.get_pool`);
  never opens a connection of its own.
- Returns plain dicts with the camelCase field names used on the wire, to keep
  the web adapter independent of any ORM.
- Verification updates accept an `expected` flag so callers can perform a
  compare-and-swap instead of a blind read-modify-write.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import psycopg

from . import db as _db
from .users import DuplicateEmail

_TS = "to_char({col} at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"')"

_CREATED_AT_SQL = _TS.format(col="created_at")
_UPDATED_AT_SQL = _TS.format(col="updated_at")

_ENTITY_COLUMNS_SQL = f"""
    id::text,
    business_name,
    license_number,
    address,
    city,
    state,
    is_verified,
    {_CREATED_AT_SQL},
    {_UPDATED_AT_SQL}
"""

# Table names are fixed identifiers, never user input.
_GROWERS = "public.growers"
_DISPENSARIES = "public.dispensaries"
_USERS = "public.users"

_USER_SELECT_SQL = f"""
    select
      u.id::text, u.email, u.name, u.role,
      {_TS.format(col="u.created_at")},
      {_TS.format(col="u.updated_at")},
      g.id::text, g.business_name, g.license_number, g.is_verified,
      d.id::text, d.business_name, d.license_number, d.is_verified
    from {_USERS} u
    left join {_GROWERS} g on g.user_id = u.id
    left join {_DISPENSARIES} d on d.user_id = u.id
"""


def _contains_pattern(needle: str) -> str:
    """ILIKE pattern matching `needle` literally as a substring."""
    escaped = needle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _entity_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "businessName": row[1],
        "licenseNumber": row[2],
        "address": row[3],
        "city": row[4],
        "state": row[5],
        "isVerified": bool(row[6]),
        "createdAt": row[7],
        "updatedAt": row[8],
    }


def _profile(values: Tuple) -> Optional[Dict[str, Any]]:
    if values[0] is None:
        return None
    return {
        "id": values[0],
        "businessName": values[1],
        "licenseNumber": values[2],
        "isVerified": bool(values[3]),
    }


def _user_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "email": row[1],
        "name": row[2],
        "role": row[3],
        "createdAt": row[4],
        "updatedAt": row[5],
        "grower": _profile(row[6:10]),
        "dispensary": _profile(row[10:14]),
    }


class DBMarketplaceRepo:
    def __init__(self, pool=None) -> None:
        """Bind to an explicit pool, or to the process-wide one on first use."""
        self._pool = pool

    def _connection(self):
        pool = self._pool if self._pool is not None else _db.get_pool()
        return pool.connection()

    # --- Verification flags -------------------------------------------------------
    def _get_flag(self, table: str, entity_id: str) -> Optional[bool]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"select is_verified from {table} where id = %s", (entity_id,))
                row = cur.fetchone()
        if not row:
            return None
        return bool(row[0])

    def _set_flag(self, table: str, entity_id: str, value: bool, expected: Optional[bool]) -> bool:
        sql = f"update {table} set is_verified = %s, updated_at = now() where id = %s"
        params: tuple = (bool(value), entity_id)
        if expected is not None:
            sql += " and is_verified = %s"
            params = params + (bool(expected),)
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                changed = cur.rowcount or 0
        return changed > 0

    def get_grower_verification(self, grower_id: str) -> Optional[bool]:
        return self._get_flag(_GROWERS, grower_id)

    def set_grower_verification(self, grower_id: str, value: bool, *, expected: Optional[bool] = None) -> bool:
        return self._set_flag(_GROWERS, grower_id, value, expected)

    def get_dispensary_verification(self, dispensary_id: str) -> Optional[bool]:
        return self._get_flag(_DISPENSARIES, dispensary_id)

    def set_dispensary_verification(self, dispensary_id: str, value: bool, *, expected: Optional[bool] = None) -> bool:
        return self._set_flag(_DISPENSARIES, dispensary_id, value, expected)

    # --- Growers --------------------------------------------------------------------
    def get_grower(self, grower_id: str) -> Optional[Dict[str, Any]]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"select {_ENTITY_COLUMNS_SQL} from {_GROWERS} where id = %s", (grower_id,))
                row = cur.fetchone()
        return _entity_row_to_dict(row) if row else None

    def list_growers(self, *, status: str | None = None, search: str | None = None) -> List[Dict[str, Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if status == "pending":
            clauses.append("is_verified = false")
        elif status == "verified":
            clauses.append("is_verified = true")
        needle = (search or "").strip()
        if needle:
            pattern = _contains_pattern(needle)
            clauses.append(
                "(business_name ilike %s escape '\\' or address ilike %s escape '\\'"
                " or license_number ilike %s escape '\\')"
            )
            params.extend([pattern, pattern, pattern])
        where = f" where {' and '.join(clauses)}" if clauses else ""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_ENTITY_COLUMNS_SQL} from {_GROWERS}{where} order by created_at desc",
                    tuple(params),
                )
                rows = cur.fetchall()
        return [_entity_row_to_dict(r) for r in rows]

    # --- Dispensaries ---------------------------------------------------------------
    def list_dispensaries_projection(self) -> List[Dict[str, Any]]:
        # No ORDER BY: callers must not rely on a stable order.
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"select id::text, business_name, city, state, address from {_DISPENSARIES}")
                rows = cur.fetchall()
        return [
            {"id": r[0], "businessName": r[1], "city": r[2], "state": r[3], "address": r[4]}
            for r in rows
        ]

    def list_dispensaries(self, *, limit: int = 100) -> List[Dict[str, Any]]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_ENTITY_COLUMNS_SQL} from {_DISPENSARIES} order by created_at desc limit %s",
                    (int(limit),),
                )
                rows = cur.fetchall()
        return [_entity_row_to_dict(r) for r in rows]

    # --- Users ----------------------------------------------------------------------
    def list_users(self, *, role: str | None = None, search: str | None = None) -> List[Dict[str, Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if role:
            clauses.append("u.role = %s")
            params.append(role)
        needle = (search or "").strip()
        if needle:
            pattern = _contains_pattern(needle)
            clauses.append("(u.email ilike %s escape '\\' or u.name ilike %s escape '\\')")
            params.extend([pattern, pattern])
        where = f" where {' and '.join(clauses)}" if clauses else ""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"{_USER_SELECT_SQL}{where} order by u.created_at desc", tuple(params))
                rows = cur.fetchall()
        return [_user_row_to_dict(r) for r in rows]

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"{_USER_SELECT_SQL} where u.id = %s", (user_id,))
                row = cur.fetchone()
        return _user_row_to_dict(row) if row else None

    def update_user(
        self,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
    ) -> bool:
        """Update the given fields; returns False when the user does not exist."""
        assignments: list[str] = []
        params: list[Any] = []
        for column, value in (("name", name), ("email", email), ("role", role)):
            if value is not None:
                assignments.append(f"{column} = %s")
                params.append(value)
        assignments.append("updated_at = now()")
        params.append(user_id)
        try:
            with self._connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(f"update {_USERS} set {', '.join(assignments)} where id = %s", tuple(params))
                    changed = cur.rowcount or 0
        except psycopg.errors.UniqueViolation as exc:
            raise DuplicateEmail("email_taken") from exc
        return changed > 0

    # --- Stats ----------------------------------------------------------------------
    def count_stats(self) -> Dict[str, int]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select
                      (select count(*) from {_GROWERS}),
                      (select count(*) from {_DISPENSARIES}),
                      (select count(*) from {_GROWERS} where is_verified),
                      (select count(*) from {_DISPENSARIES} where is_verified)
                    """
                )
                row = cur.fetchone() or (0, 0, 0, 0)
        total_g, total_d, verified_g, verified_d = (int(v or 0) for v in row)
        return {
            "totalGrowers": total_g,
            "totalDispensaries": total_d,
            "verifiedGrowers": verified_g,
            "verifiedDispensaries": verified_d,
            "pendingGrowers": total_g - verified_g,
            "pendingDispensaries": total_d - verified_d,
        }
