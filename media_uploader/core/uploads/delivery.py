"""
Public CDN delivery URLs.

Uploaded objects are served through one CDN distribution per content
kind. Video thumbnails are rendered out-of-band by the media pipeline
and published under a third distribution as "<key stem>-00001.png".
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .models import ContentKind, UploadResult

logger = logging.getLogger(__name__)

THUMBNAIL_SUFFIX = "-00001.png"

# Marker used to classify bare keys when no kind is known
_IMAGE_KEY_MARKER = ".jpeg"


def kind_from_key(key: str) -> ContentKind:
    """
    Guess the content kind of a bare key.

    Anything containing ".jpeg" is an image; everything else is treated
    as a video, including keys that are neither.
    """
    if _IMAGE_KEY_MARKER in key:
        return ContentKind.IMAGE
    return ContentKind.VIDEO


def thumbnail_key(key: str) -> str:
    """
    Derive the rendered thumbnail's key from a video key.

    The final extension (from the last dot in the key) is replaced with
    the thumbnail suffix. A key without an extension keeps its full name.
    """
    stem, dot, _ = key.rpartition(".")
    if not dot or "/" in key[len(stem):]:
        stem = key
    return f"{stem}{THUMBNAIL_SUFFIX}"


@dataclass(frozen=True)
class DeliveryURLBuilder:
    """Joins object keys onto the per-kind CDN base URLs."""
    images_base_url: str
    videos_base_url: str
    thumbnails_base_url: str

    @classmethod
    def from_settings(cls, settings) -> "DeliveryURLBuilder":
        return cls(
            images_base_url=settings.images_cdn_base_url,
            videos_base_url=settings.videos_cdn_base_url,
            thumbnails_base_url=settings.thumbnails_cdn_base_url,
        )

    def url_for(self, key: str, kind: Optional[ContentKind] = None) -> str:
        """
        CDN URL for an object key.

        With an explicit kind the URL is routed by it; otherwise the kind
        is guessed with kind_from_key. The key is appended verbatim.
        """
        if kind is None:
            kind = kind_from_key(key)

        base = self.images_base_url if kind is ContentKind.IMAGE else self.videos_base_url
        url = base + key

        logger.debug("Built delivery URL", extra={"key": key, "kind": kind.value, "url": url})
        return url

    def url_for_result(self, result: UploadResult) -> str:
        return self.url_for(result.key, result.kind)

    def thumbnail_url_for(self, key: str) -> str:
        """CDN URL of the first-frame PNG rendered for a video key."""
        return self.thumbnails_base_url + thumbnail_key(key)
