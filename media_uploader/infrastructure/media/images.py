"""
Image encoding for uploads.

Images are always stored as full-quality JPEG, whatever format the
caller hands over. Decoding with Pillow doubles as validation: bytes
that Pillow cannot open are rejected before any network call.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from ...core.uploads.errors import InvalidInputError

logger = logging.getLogger(__name__)

JPEG_QUALITY = 100


def _convert_to_rgb(img: Image.Image) -> Image.Image:
    """Flatten alpha and palette modes onto white so JPEG can store them."""
    if img.mode == "RGB":
        return img

    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background

    return img.convert("RGB")


def encode_jpeg(data: bytes) -> bytes:
    """
    Decode image bytes in any Pillow-supported format and re-encode as JPEG.

    Raises:
        InvalidInputError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgb = _convert_to_rgb(img)
            output = io.BytesIO()
            rgb.save(output, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        logger.warning("Rejected undecodable image", extra={"size_bytes": len(data), "error": str(e)})
        raise InvalidInputError("invalid image") from e

    return output.getvalue()
