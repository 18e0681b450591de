"""
On-device video thumbnails using FFmpeg.

Decodes a single frame close to the start of a local video so the app
can show a preview before (or without) uploading. This is separate from
the CDN thumbnails, which the media pipeline renders after upload.

Failures are logged and produce no image; callers treat a missing
thumbnail as "nothing to show".
"""

import asyncio
import io
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

from PIL import Image, UnidentifiedImageError

from ...config.settings import Settings
from ...core.uploads.errors import ThumbnailError

logger = logging.getLogger(__name__)

# One frame in at 60 fps
FIRST_FRAME_TIMESTAMP = 1 / 60


class ThumbnailExtractor(Protocol):
    """Protocol for local first-frame extraction."""

    async def extract_first_frame(
        self,
        video_path: Union[str, Path],
    ) -> Optional[Image.Image]:
        """Return the first frame as an image, or None if it can't be decoded."""
        ...


class FFmpegThumbnailExtractor:
    """
    Thumbnail extractor backed by the ffmpeg binary.

    FFmpeg writes the frame as PNG into a temporary directory; the PNG is
    then loaded with Pillow and the directory removed.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout_seconds: int = 10) -> None:
        self._ffmpeg = ffmpeg_path
        self._timeout = timeout_seconds

    async def extract_first_frame(
        self,
        video_path: Union[str, Path],
    ) -> Optional[Image.Image]:
        try:
            return await asyncio.to_thread(self.decode_frame, Path(video_path))
        except ThumbnailError as e:
            logger.warning(
                "Thumbnail extraction failed",
                extra={"video_path": str(video_path), "error": str(e)}
            )
            return None

    def decode_frame(
        self,
        video_path: Path,
        timestamp_seconds: float = FIRST_FRAME_TIMESTAMP,
    ) -> Image.Image:
        """
        Decode one frame at the given timestamp.

        Raises:
            ThumbnailError: If ffmpeg is missing, fails, times out or
                produces something Pillow can't read
        """
        with tempfile.TemporaryDirectory() as output_dir:
            output_path = os.path.join(output_dir, "thumbnail.png")

            # -ss before -i for fast seeking
            cmd = [
                self._ffmpeg,
                "-ss", f"{timestamp_seconds:.6f}",
                "-i", str(video_path),
                "-frames:v", "1",
                "-y",
                output_path,
            ]

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    timeout=self._timeout,
                )
            except FileNotFoundError as e:
                raise ThumbnailError("FFmpeg not found. Install with: apt-get install ffmpeg") from e
            except subprocess.TimeoutExpired as e:
                raise ThumbnailError(f"FFmpeg timed out after {self._timeout} seconds") from e

            if result.returncode != 0 or not os.path.exists(output_path):
                stderr = result.stderr.decode(errors="replace").strip()
                raise ThumbnailError(f"FFmpeg could not decode a frame: {stderr}")

            try:
                with open(output_path, "rb") as f:
                    image = Image.open(io.BytesIO(f.read()))
                    image.load()
            except (UnidentifiedImageError, OSError) as e:
                raise ThumbnailError(f"Decoded frame is not a readable image: {e}") from e

        logger.debug(
            "Extracted thumbnail",
            extra={"video_path": str(video_path), "size": image.size}
        )
        return image


class MockThumbnailExtractor:
    """
    Thumbnail extractor for local development without FFmpeg.

    Returns a 1x1 placeholder for any path that exists and None otherwise.
    """

    def __init__(self) -> None:
        logger.info("Initialized mock thumbnail extractor")

    async def extract_first_frame(
        self,
        video_path: Union[str, Path],
    ) -> Optional[Image.Image]:
        if not Path(video_path).exists():
            logger.warning("Video not found", extra={"video_path": str(video_path)})
            return None
        return Image.new("RGB", (1, 1), (255, 0, 0))


def create_thumbnail_extractor(settings: Settings) -> ThumbnailExtractor:
    """
    Factory function for thumbnail extraction.

    Returns:
        ThumbnailExtractor implementation (FFmpeg or mock)
    """
    if settings.thumbnail_mock_mode:
        return MockThumbnailExtractor()

    return FFmpegThumbnailExtractor(
        ffmpeg_path=settings.ffmpeg_path,
        timeout_seconds=settings.thumbnail_timeout_seconds,
    )
