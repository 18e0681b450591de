"""
Upload service.

MediaUploader is the one object the app talks to: it names the object,
picks the bucket, runs the configured upload strategy and derives the
delivery URLs. It is constructed explicitly with everything it needs
and holds no process-wide state.

Each upload call returns its UploadResult or raises one UploadError,
so a caller always sees exactly one outcome. Progress callbacks run on
the caller's event loop and stop before that outcome is returned.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from .delivery import DeliveryURLBuilder
from .models import ContentKind, UploadPhase, UploadRequest, UploadResult
from .naming import generate_object_key
from .progress import ProgressCallback, ProgressRelay

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class UploadStrategy(Protocol):
    """
    Interface for moving one request's bytes into its bucket.

    Implementations advance the request through its non-terminal phases
    and raise an UploadError subclass on failure. The terminal phase is
    set by MediaUploader.
    """

    async def upload(
        self,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> UploadResult:
        """Upload the request and return where the object now lives."""
        ...


class ThumbnailSource(Protocol):
    """Interface for decoding a preview frame from a local video."""

    async def extract_first_frame(self, video_path: Union[str, Path]):
        ...


ImageEncoder = Callable[[bytes], bytes]


# ---------------------------------------------------------------------------
# Upload Service
# ---------------------------------------------------------------------------

class MediaUploader:
    """
    Uploads images and videos and builds their public URLs.

    Example:
        uploader = MediaUploader(strategy, delivery, "images", "videos")
        result = await uploader.upload_image(jpeg_bytes, progress=print)
        cdn_url = uploader.delivery_url(result)
    """

    def __init__(
        self,
        strategy: UploadStrategy,
        delivery: DeliveryURLBuilder,
        image_bucket: str,
        video_bucket: str,
        image_encoder: Optional[ImageEncoder] = None,
        thumbnails: Optional[ThumbnailSource] = None,
    ) -> None:
        """
        Args:
            strategy: How bytes get into the bucket (pre-signed or managed)
            delivery: CDN URL builder
            image_bucket: Bucket for ContentKind.IMAGE
            video_bucket: Bucket for ContentKind.VIDEO
            image_encoder: Normalises raw image bytes before upload;
                raises InvalidInputError for undecodable input
            thumbnails: Local first-frame extractor for videos
        """
        self._strategy = strategy
        self._delivery = delivery
        self._buckets = {
            ContentKind.IMAGE: image_bucket,
            ContentKind.VIDEO: video_bucket,
        }
        self._image_encoder = image_encoder
        self._thumbnails = thumbnails

    @property
    def strategy(self) -> UploadStrategy:
        return self._strategy

    def bucket_for(self, kind: ContentKind) -> str:
        return self._buckets[kind]

    async def upload_image(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Encode image bytes as JPEG and upload them to the image bucket."""
        if self._image_encoder is not None:
            data = self._image_encoder(data)

        request = UploadRequest(
            kind=ContentKind.IMAGE,
            key=generate_object_key(ContentKind.IMAGE),
            bucket=self.bucket_for(ContentKind.IMAGE),
            data=data,
        )
        return await self._run(request, progress)

    async def upload_video(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
        filename: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload in-memory video bytes to the video bucket.

        filename only contributes its extension to the object key.
        """
        request = UploadRequest(
            kind=ContentKind.VIDEO,
            key=generate_object_key(ContentKind.VIDEO, filename),
            bucket=self.bucket_for(ContentKind.VIDEO),
            data=data,
        )
        return await self._run(request, progress)

    async def upload_file(
        self,
        path: Union[str, Path],
        kind: ContentKind,
        progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a local file, keeping its extension in the object key."""
        path = Path(path)
        request = UploadRequest(
            kind=kind,
            key=generate_object_key(kind, path),
            bucket=self.bucket_for(kind),
            file_path=path,
        )
        return await self._run(request, progress)

    def delivery_url(
        self,
        target: Union[UploadResult, str],
        kind: Optional[ContentKind] = None,
    ) -> str:
        """CDN URL for an upload result, or for a bare key."""
        if isinstance(target, UploadResult):
            return self._delivery.url_for_result(target)
        return self._delivery.url_for(target, kind)

    def thumbnail_url(self, target: Union[UploadResult, str]) -> str:
        """CDN URL of the rendered thumbnail for a video."""
        key = target.key if isinstance(target, UploadResult) else target
        return self._delivery.thumbnail_url_for(key)

    async def local_thumbnail(self, video_path: Union[str, Path]):
        """First frame of a local video as a Pillow image, or None."""
        if self._thumbnails is None:
            logger.warning("No thumbnail extractor configured")
            return None
        return await self._thumbnails.extract_first_frame(video_path)

    async def _run(
        self,
        request: UploadRequest,
        progress: Optional[ProgressCallback],
    ) -> UploadResult:
        relay = ProgressRelay(progress)

        logger.info(
            "Starting upload",
            extra={"kind": request.kind.value, "bucket": request.bucket, "key": request.key}
        )

        try:
            result = await self._strategy.upload(request, relay)
        except Exception:
            request.advance(UploadPhase.FAILED)
            raise
        finally:
            relay.close()

        request.advance(UploadPhase.SUCCEEDED)
        logger.info("Upload finished", extra={"key": result.key, "url": result.url})
        return result
