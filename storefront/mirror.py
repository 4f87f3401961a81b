import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as SchemaError

from docstore.database import StoreError

from .errors import UpstreamReadFailure
from .models import ABOUT, ABOUT_KEY, CATEGORIES, DEFAULT_ABOUT, PRODUCTS, AboutText, Category, Product

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


def _parse_products(snapshot: List[Dict[str, Any]]) -> List[Product]:
    out = []
    for doc in snapshot:
        value = dict(doc.get("value") or {})
        value.setdefault("id", doc.get("key"))
        try:
            out.append(Product.model_validate(value))
        except SchemaError as e:
            logger.warning("skipping malformed product %s: %s", doc.get("key"), e.errors()[0]["msg"])
    return out


def _parse_categories(snapshot: List[Dict[str, Any]]) -> List[Category]:
    out = []
    for doc in snapshot:
        try:
            out.append(Category.model_validate(doc.get("value") or {}))
        except SchemaError:
            logger.warning("skipping malformed category %s", doc.get("key"))
    return out


def _parse_about(snapshot: List[Dict[str, Any]]) -> Optional[AboutText]:
    for doc in snapshot:
        if doc.get("key") != ABOUT_KEY:
            continue
        try:
            return AboutText.model_validate(doc.get("value") or {})
        except SchemaError:
            logger.warning("malformed about document, using defaults")
            return None
    return None


class LocalMirror:
    """Read-through copy of the products, categories and about collections.

    The only writer is the subscription path: each delivered snapshot
    replaces the matching attribute wholesale, then listeners are told which
    section changed so the page can re-render it.
    """

    def __init__(self, store, seed_about: bool = False):
        self.store = store
        self.seed_about = seed_about
        self.products: List[Product] = []
        self.categories: List[Category] = []
        self.about: AboutText = DEFAULT_ABOUT
        self.load_errors: Dict[str, UpstreamReadFailure] = {}
        self._listeners: List[Listener] = []
        self._unsubscribers: List[Callable[[], None]] = []
        self._closed = False

    # Render hooks

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, section: str) -> None:
        for listener in list(self._listeners):
            listener(section)

    # Lookups

    def product_ids(self) -> List[str]:
        return [p.id for p in self.products]

    def has_category(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(c.name.lower() == wanted for c in self.categories)

    # Lifecycle

    async def _read(self, collection: str) -> List[Dict[str, Any]]:
        try:
            return await self.store.get_all(collection)
        except StoreError as e:
            logger.warning("initial load of %s failed: %s", collection, e)
            self.load_errors[collection] = UpstreamReadFailure(str(e))
            return []

    async def bootstrap(self) -> None:
        self.products = _parse_products(await self._read(PRODUCTS))
        self.categories = _parse_categories(await self._read(CATEGORIES))
        about_docs = await self._read(ABOUT)
        about = _parse_about(about_docs)
        self.about = about or DEFAULT_ABOUT
        if about is None and self.seed_about and ABOUT not in self.load_errors:
            try:
                await self.store.put(ABOUT, ABOUT_KEY, DEFAULT_ABOUT.model_dump())
            except StoreError as e:
                logger.warning("could not seed about text: %s", e)
        logger.info("bootstrap: %d products, %d categories", len(self.products), len(self.categories))

    async def start(self) -> None:
        await self.bootstrap()
        await self._subscribe(PRODUCTS, self._on_products)
        await self._subscribe(CATEGORIES, self._on_categories)
        await self._subscribe(ABOUT, self._on_about)

    async def _subscribe(self, collection: str, callback: Callable[[List[Dict[str, Any]]], None]) -> None:
        if self._closed:
            return
        try:
            self._unsubscribers.append(await self.store.subscribe(collection, callback))
        except StoreError as e:
            logger.warning("live updates for %s unavailable: %s", collection, e)

    def close(self) -> None:
        self._closed = True
        while self._unsubscribers:
            self._unsubscribers.pop()()
        self._listeners.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    # Snapshot delivery

    def _on_products(self, snapshot: List[Dict[str, Any]]) -> None:
        if self._closed:
            return
        self.products = _parse_products(snapshot)
        self._notify(PRODUCTS)

    def _on_categories(self, snapshot: List[Dict[str, Any]]) -> None:
        if self._closed:
            return
        self.categories = _parse_categories(snapshot)
        self._notify(CATEGORIES)

    def _on_about(self, snapshot: List[Dict[str, Any]]) -> None:
        if self._closed:
            return
        self.about = _parse_about(snapshot) or DEFAULT_ABOUT
        self._notify(ABOUT)
