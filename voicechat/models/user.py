# voicechat/models/user.py
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

from anyio import to_thread
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from ..core.errors import InvalidInput
from ..core.security import hash_password


# ---------- Pydantic ----------
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str
    role: str = "user"


class UserPublic(BaseModel):
    id: str = Field(..., alias="_id")
    email: EmailStr
    name: str
    role: str

    class Config:
        populate_by_name = True


class UserStore(Protocol):
    async def create(self, data: UserCreate) -> UserPublic: ...
    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]: ...


def _new_doc(data: UserCreate) -> Dict[str, Any]:
    return {
        "email": str(data.email),
        "name": data.name,
        "role": data.role,
        "password_hash": hash_password(data.password),
        "created_at": datetime.now(timezone.utc),
    }


def _public(doc: Dict[str, Any]) -> UserPublic:
    return UserPublic.model_validate({
        "_id": str(doc["_id"]),
        "email": doc["email"],
        "name": doc["name"],
        "role": doc["role"],
    })


# ---------- Repo ----------
class UserRepo:
    def __init__(self, db):
        self.col = db["users"]

    async def create(self, data: UserCreate) -> UserPublic:
        doc = _new_doc(data)

        def _insert() -> str:
            res = self.col.insert_one(doc)
            return str(res.inserted_id)

        try:
            await to_thread.run_sync(_insert)
        except DuplicateKeyError:
            raise InvalidInput("Email already registered")
        return _public(doc)

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Retorna el documento completo (incluye password_hash).
        Ideal para login.
        """
        def _find() -> Optional[Dict[str, Any]]:
            d = self.col.find_one({"email": email})
            if not d:
                return None
            d["_id"] = str(d["_id"])
            return d

        return await to_thread.run_sync(_find)


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    async def create(self, data: UserCreate) -> UserPublic:
        doc = _new_doc(data)
        doc["_id"] = uuid4().hex[:24]
        with self._lock:
            if doc["email"] in self._by_email:
                raise InvalidInput("Email already registered")
            self._by_email[doc["email"]] = doc
        return _public(doc)

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            d = self._by_email.get(email)
            return dict(d) if d else None
