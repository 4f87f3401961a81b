import logging
from typing import Optional

from docstore.database import StoreError

from .context import ViewContext
from .errors import DuplicateNameError, NotAuthorized, StorefrontError, UpstreamWriteFailure, ValidationError
from .models import CATEGORIES, PRODUCTS

logger = logging.getLogger(__name__)


def normalize_category(raw: str) -> str:
    return raw.strip().lower()


class CategoryManager:
    """Add/delete intents for the category list shown in admin mode.

    Duplicate detection reads the mirror, so it only sees categories the
    store has already delivered.
    """

    def __init__(self, store, mirror, ctx: ViewContext):
        self.store = store
        self.mirror = mirror
        self.ctx = ctx
        self.pending = ""
        self.error: Optional[StorefrontError] = None

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        if isinstance(self.error, ValidationError):
            return self.ctx.t("errors.category_empty")
        return self.ctx.t(self.error.key)

    async def add(self, raw: Optional[str] = None) -> bool:
        if raw is not None:
            self.pending = raw
        self.error = None
        if not self.ctx.is_admin:
            self.error = NotAuthorized()
            return False
        name = normalize_category(self.pending)
        if not name:
            self.error = ValidationError({"name": "errors.category_empty"})
            return False
        if self.mirror.has_category(name):
            self.error = DuplicateNameError(name)
            return False
        try:
            key = await self.store.add(CATEGORIES, {"name": name})
        except StoreError as e:
            logger.warning("adding category %r failed: %s", name, e)
            self.error = UpstreamWriteFailure(str(e))
            return False
        logger.info("added category %r as %s", name, key)
        self.pending = ""
        return True

    async def delete(self, name: str) -> bool:
        self.error = None
        if not self.ctx.is_admin:
            self.error = NotAuthorized()
            return False
        if not self.ctx.confirm(self.ctx.t("admin.confirm_delete_category")):
            return False
        try:
            docs = await self.store.get_all(CATEGORIES)
            for doc in docs:
                if (doc.get("value") or {}).get("name") == name:
                    # first match only; duplicates written around the add-time check stay
                    await self.store.delete(CATEGORIES, doc["key"])
                    logger.info("deleted category %r (%s)", name, doc["key"])
                    return True
        except StoreError as e:
            logger.warning("deleting category %r failed: %s", name, e)
            self.error = UpstreamWriteFailure(str(e))
            return False
        logger.info("category %r not found, nothing deleted", name)
        return False


async def delete_product(store, ctx: ViewContext, product_id: str) -> Optional[StorefrontError]:
    """Delete one product after confirmation.

    Returns the error to surface, or None. The product stays visible until
    the store delivers the next products snapshot.
    """
    if not ctx.is_admin:
        return NotAuthorized()
    if not ctx.confirm(ctx.t("admin.confirm_delete_product")):
        return None
    try:
        await store.delete(PRODUCTS, product_id)
    except StoreError as e:
        logger.warning("deleting product %s failed: %s", product_id, e)
        return UpstreamWriteFailure(str(e))
    logger.info("deleted product %s", product_id)
    return None
