import asyncio
import json
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi.concurrency import run_in_threadpool

from backend.config import DB_PATH

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]


def _check_id(value: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError("Document and collection ids must be non-empty strings.")
    if PATH_SEPARATOR in value:
        raise ValueError(f"Id {value!r} must not contain '{PATH_SEPARATOR}'.")
    return value


def collection_path(*segments: str) -> str:
    """
    Build a (possibly nested) collection path, e.g.
    collection_path("sessions", "Networks 731", "scans") -> "sessions/Networks 731/scans".
    """
    if not segments:
        raise ValueError("At least one path segment is required.")
    return PATH_SEPARATOR.join(_check_id(s) for s in segments)


def connect_db(db_path: Path | str | None = None):
    conn = sqlite3.connect(str(db_path or DB_PATH), check_same_thread=False)
    return conn


def create_tables(db_path: Path | str | None = None):
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect_db(path)
    cursor = conn.cursor()

    # One row per document; `collection` is the full slash-joined parent path.
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS documents (
        collection TEXT NOT NULL,
        doc_id TEXT NOT NULL,
        data TEXT NOT NULL,              -- JSON object
        updated_at TEXT NOT NULL,        -- ISO timestamp of last write
        PRIMARY KEY (collection, doc_id)
    )
    """)

    conn.commit()
    conn.close()


def clear_all_tables(db_path: Path | str | None = None):
    conn = connect_db(db_path)
    cur = conn.cursor()
    cur.execute("DELETE FROM documents")
    conn.commit()
    conn.close()


# -----------------------------
# Change subscriptions
# -----------------------------
class Subscription:
    """
    Async iterator over snapshots of one collection.

    The first snapshot is the collection's state at subscribe time; a new
    snapshot follows every write or delete in that collection. `cancel()`
    ends the iteration.
    """

    def __init__(self, store: "DocumentStore", collection: str):
        self._store = store
        self.collection = collection
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[list[Document] | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, item: list[Document] | None) -> None:
        # Writers may run on another thread or event loop.
        if self._loop.is_closed():
            self._closed = True
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def publish(self, snapshot: list[Document]) -> None:
        if not self._closed:
            self._push(snapshot)

    def cancel(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._unsubscribe(self)
        self._push(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> list[Document]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


# -----------------------------
# Document store
# -----------------------------
class DocumentStore:
    """
    Keyed JSON document store on top of SQLite.

    Every public method is a coroutine; the blocking sqlite3 calls run in the
    worker thread pool with a short-lived connection per call.
    """

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path or DB_PATH)
        self._subscribers: dict[str, list[Subscription]] = {}
        self._subscribers_lock = threading.Lock()

    # sync helpers (run in the thread pool)
    def _get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        conn = connect_db(self.db_path)
        cur = conn.cursor()
        cur.execute(
            """
            SELECT data
            FROM documents
            WHERE collection = ? AND doc_id = ?
            """,
            (collection, doc_id),
        )
        row = cur.fetchone()
        conn.close()
        if not row:
            return None
        return json.loads(row[0])

    def _set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        payload = json.dumps(data, separators=(",", ":"))
        updated_at = datetime.now().isoformat(timespec="seconds")
        conn = connect_db(self.db_path)
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO documents (collection, doc_id, data, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(collection, doc_id)
            DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
            """,
            (collection, doc_id, payload, updated_at),
        )
        conn.commit()
        conn.close()

    def _delete(self, collection: str, doc_id: str) -> bool:
        conn = connect_db(self.db_path)
        cur = conn.cursor()
        cur.execute(
            "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        return deleted

    def _list(self, collection: str) -> list[Document]:
        conn = connect_db(self.db_path)
        cur = conn.cursor()
        cur.execute(
            """
            SELECT doc_id, data
            FROM documents
            WHERE collection = ?
            ORDER BY doc_id
            """,
            (collection,),
        )
        rows = cur.fetchall()
        conn.close()
        return [Document(id=doc_id, data=json.loads(data)) for doc_id, data in rows]

    # async API
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return await run_in_threadpool(self._get, collection, _check_id(doc_id))

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write `data` under `doc_id`, replacing any existing document."""
        await run_in_threadpool(self._set, collection, _check_id(doc_id), data)
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> bool:
        deleted = await run_in_threadpool(self._delete, collection, _check_id(doc_id))
        if deleted:
            await self._notify(collection)
        return deleted

    async def list(self, collection: str) -> list[Document]:
        return await run_in_threadpool(self._list, collection)

    async def subscribe(self, collection: str) -> Subscription:
        subscription = Subscription(self, collection)
        with self._subscribers_lock:
            self._subscribers.setdefault(collection, []).append(subscription)
        subscription.publish(await self.list(collection))
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._subscribers_lock:
            listeners = self._subscribers.get(subscription.collection, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscribers.pop(subscription.collection, None)

    async def _notify(self, collection: str) -> None:
        with self._subscribers_lock:
            listeners = list(self._subscribers.get(collection, []))
        if not listeners:
            return

        snapshot = await self.list(collection)
        for subscription in listeners:
            subscription.publish(snapshot)
        logger.debug("Published %d document(s) of %s to %d subscriber(s)", len(snapshot), collection, len(listeners))
