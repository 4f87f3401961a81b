import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_MAX_EDGE = 2048
# encoded images live inline in documents, which the hosted store caps near 1 MiB
IMAGE_TARGET_BYTES = 750_000


@dataclass(frozen=True)
class Settings:
    store_url: str = "http://127.0.0.1:8085"
    store_token: Optional[str] = None
    timeout: float = 10.0
    language: str = "en"
    max_image_bytes: int = MAX_IMAGE_BYTES
    image_max_edge: int = IMAGE_MAX_EDGE
    image_target_bytes: int = IMAGE_TARGET_BYTES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            store_url=os.getenv("STORE_URL", cls.store_url),
            store_token=os.getenv("STORE_TOKEN") or None,
            timeout=float(os.getenv("STORE_TIMEOUT", cls.timeout)),
            language=os.getenv("STORE_LANGUAGE", cls.language),
            max_image_bytes=int(os.getenv("MAX_IMAGE_BYTES", cls.max_image_bytes)),
            image_max_edge=int(os.getenv("IMAGE_MAX_EDGE", cls.image_max_edge)),
            image_target_bytes=int(os.getenv("IMAGE_TARGET_BYTES", cls.image_target_bytes)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
