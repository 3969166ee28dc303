"""
Room store

Keyed get/save persistence for GameRoom documents. Two backends share one
interface: an in-process dict (default) and a MongoDB collection, used when
DATABASE_URL is configured. Mutations on one room must be serialized by
holding `store.lock(room_id)` around get -> mutate -> save.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from pymongo import MongoClient

from config import get_config
from errors import RoomNotFound
from schemas import GameRoom

logger = logging.getLogger(__name__)

COLLECTION = "gameroom"


class RoomStore:
    backend = "base"

    def __init__(self):
        # room_id -> [lock, holders + waiters]
        self._locks: Dict[str, list] = {}
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, room_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(room_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[room_id]

    def get(self, room_id: str) -> GameRoom:
        raise NotImplementedError

    def save(self, room: GameRoom) -> None:
        raise NotImplementedError

    def purge_idle(self, ttl_seconds: int) -> int:
        raise NotImplementedError


class MemoryRoomStore(RoomStore):
    """Keeps deep copies so callers never share a live room object."""

    backend = "memory"

    def __init__(self):
        super().__init__()
        self._rooms: Dict[str, GameRoom] = {}
        self._rooms_guard = threading.Lock()

    def get(self, room_id: str) -> GameRoom:
        with self._rooms_guard:
            room = self._rooms.get(room_id)
            if room is None:
                raise RoomNotFound(room_id)
            return room.model_copy(deep=True)

    def save(self, room: GameRoom) -> None:
        with self._rooms_guard:
            self._rooms[room.id] = room.model_copy(deep=True)

    def purge_idle(self, ttl_seconds: int) -> int:
        cutoff = time.time() - ttl_seconds
        with self._rooms_guard:
            stale = [rid for rid, r in self._rooms.items() if r.updated_at < cutoff]
        purged = 0
        for rid in stale:
            # a mutation in flight may refresh the room before we get the lock
            with self.lock(rid), self._rooms_guard:
                room = self._rooms.get(rid)
                if room is not None and room.updated_at < cutoff:
                    del self._rooms[rid]
                    purged += 1
        if purged:
            logger.info("purged %d idle rooms", purged)
        return purged


class MongoRoomStore(RoomStore):
    """Rooms as documents in a pymongo collection, keyed by `id`.

    Locks are per process; run a single worker when using this backend.
    """

    backend = "mongo"

    def __init__(self, collection):
        super().__init__()
        self.collection = collection

    def get(self, room_id: str) -> GameRoom:
        doc = self.collection.find_one({"id": room_id}, {"_id": 0})
        if not doc:
            raise RoomNotFound(room_id)
        return GameRoom(**{k: v for k, v in doc.items() if k in GameRoom.model_fields})

    def save(self, room: GameRoom) -> None:
        self.collection.replace_one({"id": room.id}, room.model_dump(mode="json"), upsert=True)

    def purge_idle(self, ttl_seconds: int) -> int:
        cutoff = time.time() - ttl_seconds
        stale = [d["id"] for d in self.collection.find({"updated_at": {"$lt": cutoff}}, {"id": 1})]
        purged = 0
        for rid in stale:
            with self.lock(rid):
                result = self.collection.delete_one({"id": rid, "updated_at": {"$lt": cutoff}})
                purged += result.deleted_count
        if purged:
            logger.info("purged %d idle rooms", purged)
        return purged


_store: Optional[RoomStore] = None


def get_store() -> RoomStore:
    global _store
    if _store is None:
        config = get_config()
        if config.database_url:
            client = MongoClient(config.database_url)
            _store = MongoRoomStore(client[config.database_name][COLLECTION])
            logger.info("using MongoDB room store (%s)", config.database_name)
        else:
            _store = MemoryRoomStore()
            logger.info("using in-memory room store")
    return _store
