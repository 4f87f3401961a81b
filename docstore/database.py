import asyncio
import copy
import logging
import uuid
from typing import Any, Callable, Dict, List

# In-memory document collections, per-document locks and snapshot subscribers.

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]
SnapshotCallback = Callable[[Snapshot], None]


class StoreError(Exception):
    """A read or write against the document store failed."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class NotFound(StoreError):
    def __init__(self, collection: str, key: str):
        super().__init__(f"{collection}/{key} not found", status_code=404)


class DocumentStore:
    """Collections of keyed JSON documents with push subscriptions.

    Every write replaces a whole document and then delivers the full snapshot
    of the touched collection to each of its subscribers.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._subscribers: Dict[str, Dict[int, SnapshotCallback]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._next_token = 0

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def snapshot(self, collection: str) -> Snapshot:
        docs = self._collections.get(collection, {})
        return [{"key": k, "value": copy.deepcopy(v)} for k, v in docs.items()]

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscribers.get(collection, {}))

    # Reads

    async def get_all(self, collection: str) -> Snapshot:
        return self.snapshot(collection)

    async def get(self, collection: str, key: str) -> Dict[str, Any]:
        doc = self._collections.get(collection, {}).get(key)
        if doc is None:
            raise NotFound(collection, key)
        return copy.deepcopy(doc)

    # Writes

    async def put(self, collection: str, key: str, value: Dict[str, Any]) -> None:
        lock = self._get_lock(f"{collection}:{key}")
        async with lock:
            self._collections.setdefault(collection, {})[key] = copy.deepcopy(value)
        self._publish(collection)

    async def add(self, collection: str, value: Dict[str, Any]) -> str:
        key = uuid.uuid4().hex
        await self.put(collection, key, value)
        return key

    async def delete(self, collection: str, key: str) -> None:
        lock = self._get_lock(f"{collection}:{key}")
        async with lock:
            docs = self._collections.get(collection, {})
            if key not in docs:
                raise NotFound(collection, key)
            del docs[key]
        self._publish(collection)

    async def reset(self) -> None:
        touched = list(self._collections)
        self._collections.clear()
        for collection in touched:
            self._publish(collection)

    # Subscriptions

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Callable[[], None]:
        token = self._next_token
        self._next_token += 1
        self._subscribers.setdefault(collection, {})[token] = callback
        self._deliver(collection, callback, self.snapshot(collection))

        def unsubscribe() -> None:
            self._subscribers.get(collection, {}).pop(token, None)

        return unsubscribe

    def _publish(self, collection: str) -> None:
        for callback in list(self._subscribers.get(collection, {}).values()):
            # each subscriber gets its own copy
            self._deliver(collection, callback, self.snapshot(collection))

    def _deliver(self, collection: str, callback: SnapshotCallback, snapshot: Snapshot) -> None:
        try:
            callback(snapshot)
        except Exception:
            logger.exception("subscriber for %s failed", collection)
