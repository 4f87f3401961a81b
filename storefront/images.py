import base64
import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from .config import IMAGE_MAX_EDGE, IMAGE_TARGET_BYTES, MAX_IMAGE_BYTES
from .errors import ImageProcessingError, PayloadTooLarge

logger = logging.getLogger(__name__)

QUALITY_STEPS = (85, 75, 65, 55, 45, 35)
MIN_EDGE = 64


def check_size(data: bytes, max_bytes: int = MAX_IMAGE_BYTES) -> None:
    if len(data) > max_bytes:
        raise PayloadTooLarge(len(data), max_bytes)


def _flatten(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        canvas = Image.new("RGB", img.size, (255, 255, 255))
        canvas.paste(img, mask=img.split()[-1])
        return canvas
    return img.convert("RGB")


def _encode(img: Image.Image, quality: int) -> bytes:
    buf = BytesIO()
    img.save(buf, "JPEG", quality=quality, optimize=True)
    return buf.getvalue()


def recompress(data: bytes, max_edge: int = IMAGE_MAX_EDGE, target_bytes: int = IMAGE_TARGET_BYTES) -> bytes:
    """Downscale to ``max_edge`` and re-encode as JPEG within ``target_bytes``.

    Quality steps down first; if the lowest quality is still too large the
    picture is shrunk by a quarter and the steps start over.
    """
    try:
        with Image.open(BytesIO(data)) as src:
            img = _flatten(ImageOps.exif_transpose(src))
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageProcessingError(f"cannot decode image: {e}") from e

    img.thumbnail((max_edge, max_edge), Image.LANCZOS)
    while True:
        for quality in QUALITY_STEPS:
            encoded = _encode(img, quality)
            if len(encoded) <= target_bytes:
                logger.debug("image encoded at %sx%s q=%s (%d bytes)", img.width, img.height, quality, len(encoded))
                return encoded
        w, h = img.size
        if max(w, h) * 3 // 4 < MIN_EDGE:
            raise ImageProcessingError(f"cannot fit image into {target_bytes} bytes")
        img = img.resize((max(1, w * 3 // 4), max(1, h * 3 // 4)), Image.LANCZOS)


def to_data_url(jpeg: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")
