"""
Uploader wiring.

Builds a MediaUploader from Settings: S3 client, upload strategy, CDN
URL builder, image encoder and thumbnail extractor. Everything is
created explicitly here so tests and scripts can swap any piece.
"""

import logging
from typing import Optional

from .config.settings import Settings
from .core.uploads.delivery import DeliveryURLBuilder
from .core.uploads.service import MediaUploader, UploadStrategy
from .infrastructure.media.images import encode_jpeg
from .infrastructure.media.thumbnails import create_thumbnail_extractor
from .infrastructure.storage.client import create_upload_strategy

logger = logging.getLogger(__name__)


def create_media_uploader(
    settings: Settings,
    strategy: Optional[UploadStrategy] = None,
) -> MediaUploader:
    """
    Create an uploader from settings.

    Args:
        settings: Uploader settings
        strategy: Upload strategy to use instead of the configured one

    Returns:
        A ready-to-use MediaUploader
    """
    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )
        raise ValueError(f"Missing required configuration: {', '.join(missing_fields)}")

    if strategy is None:
        strategy = create_upload_strategy(settings)

    logger.info(
        "Created media uploader",
        extra={
            "strategy": type(strategy).__name__,
            "image_bucket": settings.image_bucket,
            "video_bucket": settings.video_bucket,
        }
    )

    return MediaUploader(
        strategy=strategy,
        delivery=DeliveryURLBuilder.from_settings(settings),
        image_bucket=settings.image_bucket,
        video_bucket=settings.video_bucket,
        image_encoder=encode_jpeg,
        thumbnails=create_thumbnail_extractor(settings),
    )
