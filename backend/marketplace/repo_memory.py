"""
In-memory marketplace repository for tests and offline development.

Mirrors the interface of `DBMarketplaceRepo` so the web adapters do not care
which backend is wired. A single lock makes the conditional update behave like
the row-level compare-and-swap of the Postgres implementation.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .users import DuplicateEmail


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UserData:
    id: str
    email: str
    name: str = ""
    role: str = "grower"
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)


@dataclass
class GrowerData:
    id: str
    business_name: str
    license_number: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    is_verified: bool = False
    user_id: str | None = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)


@dataclass
class DispensaryData:
    id: str
    business_name: str
    license_number: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    is_verified: bool = False
    user_id: str | None = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)


def _profile(entity) -> Dict[str, Any] | None:
    if entity is None:
        return None
    return {
        "id": entity.id,
        "businessName": entity.business_name,
        "licenseNumber": entity.license_number,
        "isVerified": entity.is_verified,
    }


def _grower_to_dict(g: GrowerData) -> Dict[str, Any]:
    return {
        "id": g.id,
        "businessName": g.business_name,
        "licenseNumber": g.license_number,
        "address": g.address,
        "city": g.city,
        "state": g.state,
        "isVerified": g.is_verified,
        "createdAt": g.created_at,
        "updatedAt": g.updated_at,
    }


def _dispensary_to_dict(d: DispensaryData) -> Dict[str, Any]:
    return {
        "id": d.id,
        "businessName": d.business_name,
        "licenseNumber": d.license_number,
        "address": d.address,
        "city": d.city,
        "state": d.state,
        "isVerified": d.is_verified,
        "createdAt": d.created_at,
        "updatedAt": d.updated_at,
    }


class InMemoryMarketplaceRepo:
    def __init__(self) -> None:
        self.growers: Dict[str, GrowerData] = {}
        self.dispensaries: Dict[str, DispensaryData] = {}
        self.users: Dict[str, UserData] = {}
        self._lock = threading.Lock()

    # --- Seeding ------------------------------------------------------------------
    def add_grower(self, *, business_name: str, id: str | None = None, is_verified: bool = False, **extra) -> GrowerData:
        grower = GrowerData(id=id or str(uuid4()), business_name=business_name, is_verified=bool(is_verified), **extra)
        self.growers[grower.id] = grower
        return grower

    def add_dispensary(self, *, business_name: str, id: str | None = None, is_verified: bool = False, **extra) -> DispensaryData:
        dispensary = DispensaryData(id=id or str(uuid4()), business_name=business_name, is_verified=bool(is_verified), **extra)
        self.dispensaries[dispensary.id] = dispensary
        return dispensary

    def add_user(self, *, email: str, id: str | None = None, **extra) -> UserData:
        user = UserData(id=id or str(uuid4()), email=email, **extra)
        self.users[user.id] = user
        return user

    # --- Verification flags -------------------------------------------------------
    def get_grower_verification(self, grower_id: str) -> Optional[bool]:
        g = self.growers.get(grower_id)
        return g.is_verified if g else None

    def set_grower_verification(self, grower_id: str, value: bool, *, expected: Optional[bool] = None) -> bool:
        return self._set_flag(self.growers, grower_id, value, expected)

    def get_dispensary_verification(self, dispensary_id: str) -> Optional[bool]:
        d = self.dispensaries.get(dispensary_id)
        return d.is_verified if d else None

    def set_dispensary_verification(self, dispensary_id: str, value: bool, *, expected: Optional[bool] = None) -> bool:
        return self._set_flag(self.dispensaries, dispensary_id, value, expected)

    def _set_flag(self, table: Dict[str, Any], entity_id: str, value: bool, expected: Optional[bool]) -> bool:
        with self._lock:
            row = table.get(entity_id)
            if row is None:
                return False
            if expected is not None and row.is_verified != expected:
                return False
            row.is_verified = bool(value)
            row.updated_at = _now_iso()
            return True

    # --- Growers --------------------------------------------------------------------
    def get_grower(self, grower_id: str) -> Optional[Dict[str, Any]]:
        g = self.growers.get(grower_id)
        return _grower_to_dict(g) if g else None

    def list_growers(self, *, status: str | None = None, search: str | None = None) -> List[Dict[str, Any]]:
        items = list(self.growers.values())
        if status == "pending":
            items = [g for g in items if not g.is_verified]
        elif status == "verified":
            items = [g for g in items if g.is_verified]
        needle = (search or "").strip().lower()
        if needle:
            items = [
                g for g in items
                if any(needle in (v or "").lower() for v in (g.business_name, g.address, g.license_number))
            ]
        items.sort(key=lambda g: g.created_at, reverse=True)
        return [_grower_to_dict(g) for g in items]

    # --- Dispensaries ---------------------------------------------------------------
    def list_dispensaries_projection(self) -> List[Dict[str, Any]]:
        return [
            {"id": d.id, "businessName": d.business_name, "city": d.city, "state": d.state, "address": d.address}
            for d in self.dispensaries.values()
        ]

    def list_dispensaries(self, *, limit: int = 100) -> List[Dict[str, Any]]:
        items = sorted(self.dispensaries.values(), key=lambda d: d.created_at, reverse=True)
        return [_dispensary_to_dict(d) for d in items[:limit]]

    # --- Users ----------------------------------------------------------------------
    def _owned_by(self, table: Dict[str, Any], user_id: str):
        return next((row for row in table.values() if row.user_id == user_id), None)

    def _user_to_dict(self, u: UserData) -> Dict[str, Any]:
        return {
            "id": u.id,
            "email": u.email,
            "name": u.name,
            "role": u.role,
            "createdAt": u.created_at,
            "updatedAt": u.updated_at,
            "grower": _profile(self._owned_by(self.growers, u.id)),
            "dispensary": _profile(self._owned_by(self.dispensaries, u.id)),
        }

    def list_users(self, *, role: str | None = None, search: str | None = None) -> List[Dict[str, Any]]:
        items = list(self.users.values())
        if role:
            items = [u for u in items if u.role == role]
        needle = (search or "").strip().lower()
        if needle:
            items = [u for u in items if needle in u.email.lower() or needle in (u.name or "").lower()]
        items.sort(key=lambda u: u.created_at, reverse=True)
        return [self._user_to_dict(u) for u in items]

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        u = self.users.get(user_id)
        return self._user_to_dict(u) if u else None

    def update_user(
        self,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
    ) -> bool:
        with self._lock:
            u = self.users.get(user_id)
            if u is None:
                return False
            if email is not None and any(o.email == email and o.id != user_id for o in self.users.values()):
                raise DuplicateEmail("email_taken")
            if name is not None:
                u.name = name
            if email is not None:
                u.email = email
            if role is not None:
                u.role = role
            u.updated_at = _now_iso()
            return True

    # --- Stats ----------------------------------------------------------------------
    def count_stats(self) -> Dict[str, int]:
        verified_growers = sum(1 for g in self.growers.values() if g.is_verified)
        verified_dispensaries = sum(1 for d in self.dispensaries.values() if d.is_verified)
        return {
            "totalGrowers": len(self.growers),
            "totalDispensaries": len(self.dispensaries),
            "verifiedGrowers": verified_growers,
            "verifiedDispensaries": verified_dispensaries,
            "pendingGrowers": len(self.growers) - verified_growers,
            "pendingDispensaries": len(self.dispensaries) - verified_dispensaries,
        }
