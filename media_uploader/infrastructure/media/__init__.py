"""
Local media processing.

- images: validate and re-encode images as JPEG with Pillow
- thumbnails: first-frame extraction from local video with FFmpeg
"""

from .images import encode_jpeg
from .thumbnails import (
    FFmpegThumbnailExtractor,
    MockThumbnailExtractor,
    ThumbnailExtractor,
    create_thumbnail_extractor,
)

__all__ = [
    "FFmpegThumbnailExtractor",
    "MockThumbnailExtractor",
    "ThumbnailExtractor",
    "create_thumbnail_extractor",
    "encode_jpeg",
]
