import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from fastapi import HTTPException

# Import from other modules
from .core import AddedOut, DocumentIn, _format_event, _is_valid_collection
from .database import DocumentStore, NotFound

# This file contains the core logic for all document store endpoints.


def _check_collection(collection: str) -> None:
    if not _is_valid_collection(collection):
        raise HTTPException(status_code=400, detail="invalid collection name")


def check_admin(authorization: Optional[str], admin_token: Optional[str]) -> None:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="bearer token required")
    if not admin_token or authorization[len("Bearer "):] != admin_token:
        raise HTTPException(status_code=403, detail="admin capability required")


def is_admin(authorization: Optional[str], admin_token: Optional[str]) -> bool:
    try:
        check_admin(authorization, admin_token)
    except HTTPException:
        return False
    return True


# Reads
async def list_documents_logic(db: DocumentStore, collection: str):
    _check_collection(collection)
    return await db.get_all(collection)


async def get_document_logic(db: DocumentStore, collection: str, key: str):
    _check_collection(collection)
    try:
        value = await db.get(collection, key)
    except NotFound:
        raise HTTPException(status_code=404, detail="document not found")
    return {"key": key, "value": value}


# Writes
async def put_document_logic(db: DocumentStore, collection: str, key: str, payload: DocumentIn):
    _check_collection(collection)
    await db.put(collection, key, payload.value)
    return {"key": key, "value": payload.value}


async def add_document_logic(db: DocumentStore, collection: str, payload: DocumentIn):
    _check_collection(collection)
    key = await db.add(collection, payload.value)
    return AddedOut(key=key)


async def delete_document_logic(db: DocumentStore, collection: str, key: str):
    _check_collection(collection)
    try:
        await db.delete(collection, key)
    except NotFound:
        raise HTTPException(status_code=404, detail="document not found")
    return {"key": key, "status": "deleted"}


# Snapshot stream
async def snapshot_events(
    db: DocumentStore,
    collection: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """Yield one server-sent event per snapshot of ``collection``.

    The first event carries the current state. A comment line is sent every
    ``keepalive`` seconds without changes so that idle proxies keep the
    connection open. The subscription is released when the client goes away
    or the generator is closed.
    """
    _check_collection(collection)
    queue: "asyncio.Queue[Any]" = asyncio.Queue()
    unsubscribe = await db.subscribe(collection, queue.put_nowait)
    try:
        while True:
            if await is_disconnected():
                break
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield _format_event(snapshot)
    finally:
        unsubscribe()


# Utility: reset (for tests/demo)
async def reset_all_logic(db: DocumentStore) -> Dict[str, str]:
    await db.reset()
    return {"status": "reset"}
