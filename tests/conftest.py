# tests/conftest.py
import io

import pytest
from PIL import Image

from docstore.database import DocumentStore, StoreError
from storefront.context import ViewContext


class FlakyStore:
    """Wraps a DocumentStore and fails the operations named in ``failing``."""

    def __init__(self, inner=None, failing=()):
        self.inner = inner if inner is not None else DocumentStore()
        self.failing = set(failing)
        self.calls = []

    def _check(self, op, *args):
        self.calls.append((op,) + args)
        if op in self.failing:
            raise StoreError(f"{op} unavailable", status_code=503)

    async def get_all(self, collection):
        self._check("get_all", collection)
        return await self.inner.get_all(collection)

    async def put(self, collection, key, value):
        self._check("put", collection, key)
        await self.inner.put(collection, key, value)

    async def add(self, collection, value):
        self._check("add", collection)
        return await self.inner.add(collection, value)

    async def delete(self, collection, key):
        self._check("delete", collection, key)
        await self.inner.delete(collection, key)

    async def subscribe(self, collection, callback):
        self._check("subscribe", collection)
        return await self.inner.subscribe(collection, callback)

    def count(self, op):
        return sum(1 for call in self.calls if call[0] == op)


@pytest.fixture
def make_flaky():
    return FlakyStore


@pytest.fixture
def admin():
    return ViewContext(is_admin=True, confirm=lambda question: True)


@pytest.fixture
def visitor():
    return ViewContext(is_admin=False)


@pytest.fixture
def make_png():
    def png_bytes(width=64, height=48, color=(200, 120, 80), mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, (width, height), color).save(buf, "PNG")
        return buf.getvalue()
    return png_bytes
