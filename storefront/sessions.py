import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from docstore.database import StoreError

from .config import Settings
from .context import ViewContext
from .errors import (
    ImageProcessingError, NotAuthorized, PayloadTooLarge, StorefrontError,
    UpstreamWriteFailure, ValidationError,
)
from .images import check_size, recompress, to_data_url
from .models import ABOUT, ABOUT_KEY, DEFAULT_ABOUT, MAX_LIST_ENTRIES, PRODUCTS, AboutText, Product

logger = logging.getLogger(__name__)

REQUIRED = "errors.required"
UNKNOWN_CATEGORY = "errors.unknown_category"


class SessionState(str, Enum):
    CLOSED = "closed"
    EDITING = "editing"
    SAVING = "saving"


def new_product_id(taken: Iterable[str] = ()) -> str:
    taken = set(taken)
    while True:
        pid = uuid.uuid4().hex
        if pid not in taken:
            return pid


class EditSession:
    """Working copy of one document, isolated from the mirror until saved.

    Subclasses name the collection, the required text fields and how the
    draft becomes a record. A save is a single full-replace ``put``; the
    mirror only learns about it when the store delivers the next snapshot.
    """

    collection = ""
    required: Tuple[str, ...] = ()
    text_fields: Tuple[str, ...] = ()

    def __init__(self, store, ctx: ViewContext, settings: Optional[Settings] = None):
        self.store = store
        self.ctx = ctx
        self.settings = settings or Settings()
        self.state = SessionState.CLOSED
        self.draft: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.error: Optional[StorefrontError] = None
        # bumped on every open/cancel so late results from an older session are dropped
        self._generation = 0

    @property
    def message(self) -> Optional[str]:
        return self.ctx.t(self.error.key) if self.error else None

    def field_message(self, name: str) -> Optional[str]:
        reason = self.errors.get(name)
        return self.ctx.t(reason) if reason else None

    @property
    def is_open(self) -> bool:
        return self.state is not SessionState.CLOSED

    def _key(self) -> str:
        raise NotImplementedError

    def _build_record(self):
        raise NotImplementedError

    def _begin(self, draft: Dict[str, Any]) -> None:
        self._generation += 1
        self.draft = draft
        self.errors = {}
        self.error = None
        self.state = SessionState.EDITING

    def _require_admin(self) -> bool:
        if self.ctx.is_admin:
            return True
        self.error = NotAuthorized()
        return False

    def set_field(self, name: str, value: str) -> bool:
        if name not in self.text_fields:
            raise KeyError(name)
        if self.state is not SessionState.EDITING:
            return False
        self.draft[name] = value
        if name in self.errors and value.strip():
            del self.errors[name]
            if not self.errors and isinstance(self.error, ValidationError):
                self.error = None
        return True

    def validate(self) -> Dict[str, str]:
        return {name: REQUIRED for name in self.required if not str(self.draft.get(name, "")).strip()}

    def cancel(self) -> None:
        self._generation += 1
        self.state = SessionState.CLOSED
        self.errors = {}
        self.error = None

    async def save(self):
        """Validate and write the draft; returns the saved record or None."""
        if self.state is not SessionState.EDITING:
            return None
        if not self._require_admin():
            return None
        self.errors = self.validate()
        if self.errors:
            self.error = ValidationError(self.errors)
            return None

        record = self._build_record()
        key = self._key()
        generation = self._generation
        self.state = SessionState.SAVING
        self.error = None
        try:
            await self.store.put(self.collection, key, record.model_dump())
        except StoreError as e:
            if generation != self._generation:
                logger.info("save of %s/%s failed after the session closed: %s", self.collection, key, e)
                return None
            logger.warning("save of %s/%s failed: %s", self.collection, key, e)
            self.state = SessionState.EDITING
            self.error = UpstreamWriteFailure(str(e))
            return None

        if generation != self._generation:
            logger.debug("save of %s/%s finished after the session closed", self.collection, key)
            return None
        logger.info("saved %s/%s", self.collection, key)
        self.state = SessionState.CLOSED
        return record

    # Image sub-session

    async def attach_image(self, data: bytes) -> bool:
        if self.state is not SessionState.EDITING:
            return False
        try:
            check_size(data, self.settings.max_image_bytes)
        except PayloadTooLarge as e:
            logger.info("rejected image upload: %s", e)
            self.errors["image"] = e.key
            self.error = e
            return False

        generation = self._generation
        try:
            jpeg = await asyncio.to_thread(recompress, data, self.settings.image_max_edge,
                                           self.settings.image_target_bytes)
        except ImageProcessingError as e:
            logger.warning("image processing failed: %s", e)
            if generation == self._generation:
                self.errors["image"] = e.key
                self.error = e
            return False

        if generation != self._generation or self.state is not SessionState.EDITING:
            return False
        self.draft["image"] = to_data_url(jpeg)
        self.errors.pop("image", None)
        if isinstance(self.error, (PayloadTooLarge, ImageProcessingError)):
            self.error = None
        return True

    def remove_image(self) -> None:
        if self.state is SessionState.EDITING:
            self.draft["image"] = None


class ProductEditSession(EditSession):
    collection = PRODUCTS
    required = ("name", "category", "description", "size")
    text_fields = required

    def __init__(self, store, ctx: ViewContext, mirror=None, settings: Optional[Settings] = None):
        super().__init__(store, ctx, settings)
        self.mirror = mirror
        self.is_new = False

    def open(self, product: Optional[Product] = None) -> bool:
        if not self._require_admin():
            return False
        if product is None:
            taken = self.mirror.product_ids() if self.mirror is not None else ()
            draft = {
                "id": new_product_id(taken),
                "name": "",
                "category": "",
                "description": "",
                "size": "",
                "benefits": [],
                "ingredients": [],
                "image": None,
            }
        else:
            draft = product.model_dump()
        # the form always shows every slot
        for name in ("benefits", "ingredients"):
            draft[name] = list(draft[name]) + [""] * (MAX_LIST_ENTRIES - len(draft[name]))
        self.is_new = product is None
        self._begin(draft)
        return True

    def _set_slot(self, name: str, index: int, value: str) -> bool:
        if not 0 <= index < MAX_LIST_ENTRIES:
            raise IndexError(f"{name} slot {index} out of range")
        if self.state is not SessionState.EDITING:
            return False
        self.draft[name][index] = value
        return True

    def set_benefit(self, index: int, value: str) -> bool:
        return self._set_slot("benefits", index, value)

    def set_ingredient(self, index: int, value: str) -> bool:
        return self._set_slot("ingredients", index, value)

    def validate(self) -> Dict[str, str]:
        errors = super().validate()
        category = self.draft.get("category", "").strip()
        # products may only be filed under a category that exists right now
        if "category" not in errors and self.mirror is not None and not self.mirror.has_category(category):
            errors["category"] = UNKNOWN_CATEGORY
        return errors

    def _key(self) -> str:
        return self.draft["id"]

    def _build_record(self) -> Product:
        d = self.draft
        return Product(
            id=d["id"],
            name=d["name"].strip(),
            category=d["category"].strip(),
            description=d["description"].strip(),
            size=d["size"].strip(),
            benefits=[b.strip() for b in d["benefits"] if b.strip()],
            ingredients=[i.strip() for i in d["ingredients"] if i.strip()],
            image=d["image"],
        )


class AboutEditSession(EditSession):
    collection = ABOUT
    required = ("title", "subtitle", "description")
    text_fields = required

    def __init__(self, store, ctx: ViewContext, mirror=None, settings: Optional[Settings] = None):
        super().__init__(store, ctx, settings)
        self.mirror = mirror

    def open(self, about: Optional[AboutText] = None) -> bool:
        if not self._require_admin():
            return False
        if about is None:
            about = self.mirror.about if self.mirror is not None else DEFAULT_ABOUT
        self._begin(about.model_dump())
        return True

    def _key(self) -> str:
        return ABOUT_KEY

    def _build_record(self) -> AboutText:
        d = self.draft
        return AboutText(
            title=d["title"].strip(),
            subtitle=d["subtitle"].strip(),
            description=d["description"].strip(),
            image=d["image"],
        )
