"""Shared fixtures for uploader tests."""

import io

import pytest
from PIL import Image

from media_uploader.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    """Mock-mode settings with recognisable buckets and CDN bases."""
    return Settings(
        _env_file=None,
        upload_strategy="mock",
        thumbnail_mock_mode=True,
        image_bucket="test-images",
        video_bucket="test-videos",
        images_cdn_base_url="https://img.cdn.test/",
        videos_cdn_base_url="https://vid.cdn.test/",
        thumbnails_cdn_base_url="https://thumb.cdn.test/",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A small RGBA PNG, to exercise transparency flattening."""
    img = Image.new("RGBA", (8, 6), (0, 128, 255, 128))
    output = io.BytesIO()
    img.save(output, format="PNG")
    return output.getvalue()
