# sdk/storeclient.py
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

import httpx
import requests

from docstore.database import StoreError

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]


def _decode(r, method: str, path: str) -> Any:
    try:
        return r.json()
    except ValueError as e:
        raise StoreError(f"{method} {path} returned a non-JSON body", status_code=502) from e


def _snapshot(body: Any, path: str) -> Snapshot:
    if not isinstance(body, list) or not all(isinstance(d, dict) and "key" in d and isinstance(d.get("value"), dict)
                                             for d in body):
        raise StoreError(f"GET {path} returned an unexpected body", status_code=502)
    return body


def _added_key(body: Any, path: str) -> str:
    try:
        return str(body["key"])
    except (KeyError, TypeError) as e:
        raise StoreError(f"POST {path} returned no key", status_code=502) from e


class StoreClient:
    """Blocking client for one-shot reads and writes (the CLI's reset and seed commands)."""

    def __init__(self, base_url: str = "http://localhost:8085", api_key: Optional[str] = None,
                 timeout: int = 10, session: Any = None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except (requests.RequestException, httpx.HTTPError) as e:
            raise StoreError(f"{method} {path} failed: {e}", status_code=503) from e
        if r.status_code >= 400:
            raise StoreError(f"{method} {path} -> HTTP {r.status_code}", status_code=r.status_code)
        return _decode(r, method, path)

    def reset(self):
        return self._request("POST", "/reset")

    def is_admin(self) -> bool:
        body = self._request("GET", "/auth/me")
        return isinstance(body, dict) and bool(body.get("is_admin"))

    def get_all(self, collection: str) -> Snapshot:
        path = f"/collections/{collection}"
        return _snapshot(self._request("GET", path), path)

    def put(self, collection: str, key: str, value: Dict[str, Any]):
        return self._request("PUT", f"/collections/{collection}/{key}", json={"value": value})

    def add(self, collection: str, value: Dict[str, Any]) -> str:
        path = f"/collections/{collection}"
        return _added_key(self._request("POST", path, json={"value": value}), path)

    def delete(self, collection: str, key: str):
        return self._request("DELETE", f"/collections/{collection}/{key}")


async def iter_snapshots(lines: AsyncIterator[str]) -> AsyncIterator[Snapshot]:
    """Decode server-sent events into snapshots, skipping comments."""
    data: List[str] = []
    async for line in lines:
        if not line:
            if data:
                yield json.loads("\n".join(data))
                data = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            data.append(line[5:].lstrip())
    if data:
        yield json.loads("\n".join(data))


class AsyncStoreClient:
    """Non-blocking document store client with push subscriptions.

    Every read and write is a coroutine; failures surface as ``StoreError``.
    ``subscribe`` keeps a server-sent event stream open in a background task
    and hands each snapshot to the callback on the running loop.
    """

    def __init__(self, base_url: str = "http://localhost:8085", api_key: Optional[str] = None,
                 timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), headers=headers,
                                         timeout=timeout, transport=transport)
        self._listeners: Set["asyncio.Task[None]"] = set()

    async def __aenter__(self) -> "AsyncStoreClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for task in list(self._listeners):
            task.cancel()
        if self._listeners:
            await asyncio.gather(*self._listeners, return_exceptions=True)
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            r = await self._client.request(method, path, **kwargs)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(f"{method} {path} -> HTTP {e.response.status_code}",
                             status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}", status_code=503) from e
        return r

    async def is_admin(self) -> bool:
        r = await self._request("GET", "/auth/me")
        body = _decode(r, "GET", "/auth/me")
        return isinstance(body, dict) and bool(body.get("is_admin"))

    async def get_all(self, collection: str) -> Snapshot:
        path = f"/collections/{collection}"
        r = await self._request("GET", path)
        return _snapshot(_decode(r, "GET", path), path)

    async def put(self, collection: str, key: str, value: Dict[str, Any]) -> None:
        await self._request("PUT", f"/collections/{collection}/{key}", json={"value": value})

    async def add(self, collection: str, value: Dict[str, Any]) -> str:
        path = f"/collections/{collection}"
        r = await self._request("POST", path, json={"value": value})
        return _added_key(_decode(r, "POST", path), path)

    async def delete(self, collection: str, key: str) -> None:
        await self._request("DELETE", f"/collections/{collection}/{key}")

    async def subscribe(self, collection: str, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        task = asyncio.get_running_loop().create_task(self._listen(collection, callback))
        self._listeners.add(task)
        task.add_done_callback(self._listeners.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _listen(self, collection: str, callback: Callable[[Snapshot], None]) -> None:
        path = f"/collections/{collection}/stream"
        try:
            async with self._client.stream("GET", path, timeout=httpx.Timeout(self.timeout, read=None)) as r:
                r.raise_for_status()
                async for snapshot in iter_snapshots(r.aiter_lines()):
                    try:
                        callback(snapshot)
                    except Exception:
                        logger.exception("subscriber for %s failed", collection)
        except httpx.HTTPError as e:
            logger.warning("subscription to %s ended: %s", collection, e)
        except ValueError as e:
            logger.warning("subscription to %s sent an unreadable snapshot: %s", collection, e)
        else:
            logger.debug("subscription to %s closed by server", collection)
