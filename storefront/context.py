import logging
from dataclasses import dataclass, field
from typing import Callable

from docstore.database import StoreError

from .i18n import DEFAULT_LANGUAGE, translate

logger = logging.getLogger(__name__)


def _deny(question: str) -> bool:
    return False


@dataclass
class ViewContext:
    """Per-view state handed to every admin-capable component.

    ``confirm`` is the blocking yes/no gate shown before destructive actions;
    the default refuses everything.
    """

    is_admin: bool = False
    language: str = DEFAULT_LANGUAGE
    confirm: Callable[[str], bool] = field(default=_deny, repr=False)

    def t(self, key: str) -> str:
        return translate(key, self.language)

    @classmethod
    async def from_identity(cls, client, language: str = DEFAULT_LANGUAGE,
                            confirm: Callable[[str], bool] = _deny) -> "ViewContext":
        try:
            admin = await client.is_admin()
        except StoreError as e:
            logger.warning("identity check failed, continuing as visitor: %s", e)
            admin = False
        return cls(is_admin=admin, language=language, confirm=confirm)
