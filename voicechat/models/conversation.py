# voicechat/models/conversation.py
"""
Conversaciones de chat (colección `chats`, mensajes embebidos).

Reglas:
- Los mensajes solo se agregan, nunca se editan ni reordenan.
- Cada turno agrega (user, assistant) en UNA sola actualización.
- Todo acceso va filtrado por dueño; un chat ajeno responde NotFound
  (no Forbidden) para no filtrar su existencia.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Protocol
from uuid import uuid4

from anyio import to_thread
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, Field
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from ..core.errors import NotFound, StoreError

Role = Literal["user", "assistant"]


def _utcnow() -> datetime:
    # Mongo guarda datetimes naive en UTC; usamos lo mismo en memoria
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------- Pydantic ----------
class Message(BaseModel):
    role: Role
    content: str = Field(min_length=1)
    audio_url: Optional[str] = Field(default=None, alias="audioUrl")
    timestamp: datetime = Field(default_factory=_utcnow)

    class Config:
        populate_by_name = True


class ConversationPublic(BaseModel):
    id: str = Field(..., alias="_id")
    user: str
    messages: List[Message] = []
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class ConversationStore(Protocol):
    async def create(self, owner: str) -> ConversationPublic: ...
    async def get(self, chat_id: str, owner: str) -> ConversationPublic: ...
    async def list(self, owner: str) -> List[ConversationPublic]: ...
    async def append_messages(self, chat_id: str, owner: str, messages: List[Message]) -> ConversationPublic: ...
    async def delete(self, chat_id: str, owner: str) -> bool: ...


def _to_public(doc: Dict[str, Any]) -> ConversationPublic:
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return ConversationPublic.model_validate(out)


def _oid(chat_id: str) -> ObjectId:
    try:
        return ObjectId(chat_id)
    except (InvalidId, TypeError):
        raise NotFound("Chat not found")


# ---------- Repo Mongo ----------
class ConversationRepo:
    def __init__(self, db):
        self.col = db["chats"]

    async def _run(self, fn):
        try:
            return await to_thread.run_sync(fn)
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    async def create(self, owner: str) -> ConversationPublic:
        now = _utcnow()
        doc: Dict[str, Any] = {"user": owner, "messages": [], "created_at": now, "updated_at": now}

        def _insert():
            res = self.col.insert_one(doc)  # PyMongo muta doc["_id"]
            return res.inserted_id

        await self._run(_insert)
        return _to_public(doc)

    async def get(self, chat_id: str, owner: str) -> ConversationPublic:
        oid = _oid(chat_id)
        doc = await self._run(lambda: self.col.find_one({"_id": oid, "user": owner}))
        if not doc:
            raise NotFound("Chat not found")
        return _to_public(doc)

    async def list(self, owner: str) -> List[ConversationPublic]:
        def _fetch():
            cur = self.col.find({"user": owner}).sort("updated_at", DESCENDING)
            return [_to_public(d) for d in cur]

        return await self._run(_fetch)

    async def append_messages(self, chat_id: str, owner: str, messages: List[Message]) -> ConversationPublic:
        """
        $push con $each: todo el lote entra en una sola operación atómica
        junto con updated_at.
        """
        oid = _oid(chat_id)
        docs = [m.model_dump() for m in messages]

        def _update():
            return self.col.find_one_and_update(
                {"_id": oid, "user": owner},
                {"$push": {"messages": {"$each": docs}}, "$set": {"updated_at": _utcnow()}},
                return_document=ReturnDocument.AFTER,
            )

        updated = await self._run(_update)
        if not updated:
            raise NotFound("Chat not found")
        return _to_public(updated)

    async def delete(self, chat_id: str, owner: str) -> bool:
        oid = _oid(chat_id)
        res = await self._run(lambda: self.col.delete_one({"_id": oid, "user": owner}))
        if res.deleted_count == 0:
            raise NotFound("Chat not found")
        return True


# ---------- Repo en memoria (STORE_BACKEND=memory, tests) ----------
class InMemoryConversationRepo:
    def __init__(self) -> None:
        # orden de inserción = orden de última modificación
        self._chats: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _find(self, chat_id: str, owner: str) -> Dict[str, Any]:
        doc = self._chats.get(chat_id)
        if doc is None or doc["user"] != owner:
            raise NotFound("Chat not found")
        return doc

    async def create(self, owner: str) -> ConversationPublic:
        now = _utcnow()
        chat_id = uuid4().hex[:24]
        doc = {"_id": chat_id, "user": owner, "messages": [], "created_at": now, "updated_at": now}
        with self._lock:
            self._chats[chat_id] = doc
            return _to_public(doc)

    async def get(self, chat_id: str, owner: str) -> ConversationPublic:
        with self._lock:
            return _to_public(self._find(chat_id, owner))

    async def list(self, owner: str) -> List[ConversationPublic]:
        with self._lock:
            return [_to_public(d) for d in reversed(self._chats.values()) if d["user"] == owner]

    async def append_messages(self, chat_id: str, owner: str, messages: List[Message]) -> ConversationPublic:
        with self._lock:
            doc = self._find(chat_id, owner)
            doc["messages"] = doc["messages"] + [m.model_dump() for m in messages]
            doc["updated_at"] = _utcnow()
            self._chats[chat_id] = self._chats.pop(chat_id)
            return _to_public(doc)

    async def delete(self, chat_id: str, owner: str) -> bool:
        with self._lock:
            self._find(chat_id, owner)
            del self._chats[chat_id]
            return True
