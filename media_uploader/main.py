"""
Command-line entry point.

Usage:
    media-uploader upload photo.png
    media-uploader upload clip.mov --kind video
    media-uploader url 1F3B...-0A9C.jpeg
    media-uploader thumbnail-url 1F3B...-0A9C.MOV
    media-uploader thumbnail clip.mov preview.png

Reads configuration from the environment and a local .env file.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config.settings import get_settings
from .core.uploads.delivery import DeliveryURLBuilder
from .core.uploads.errors import UploadError
from .core.uploads.models import ContentKind
from .dependencies import create_media_uploader
from .infrastructure.media.thumbnails import create_thumbnail_extractor

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".heic", ".heif", ".webp", ".gif", ".bmp"}


def guess_kind(path: Path) -> ContentKind:
    """Pick a content kind from a local file's extension."""
    if path.suffix.lower() in IMAGE_SUFFIXES:
        return ContentKind.IMAGE
    return ContentKind.VIDEO


def _print_progress(fraction: float) -> None:
    print(f"\rprogress: {fraction * 100:5.1f}%", end="", file=sys.stderr, flush=True)


async def _upload(uploader, path: Path, kind: ContentKind) -> dict:
    if kind is ContentKind.IMAGE:
        result = await uploader.upload_image(path.read_bytes(), progress=_print_progress)
    else:
        result = await uploader.upload_file(path, kind, progress=_print_progress)
    print(file=sys.stderr)

    output = {
        "key": result.key,
        "url": result.url,
        "delivery_url": uploader.delivery_url(result),
    }
    if kind is ContentKind.VIDEO:
        output["thumbnail_url"] = uploader.thumbnail_url(result)
    return output


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-uploader",
        description="Upload images and videos to S3 and derive their CDN URLs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload a local image or video")
    upload.add_argument("path", type=Path)
    upload.add_argument("--kind", choices=[k.value for k in ContentKind])

    url = subparsers.add_parser("url", help="Print the CDN URL for an object key")
    url.add_argument("key")
    url.add_argument("--kind", choices=[k.value for k in ContentKind])

    thumbnail_url = subparsers.add_parser("thumbnail-url", help="Print the CDN thumbnail URL for a video key")
    thumbnail_url.add_argument("key")

    thumbnail = subparsers.add_parser("thumbnail", help="Save the first frame of a local video")
    thumbnail.add_argument("video", type=Path)
    thumbnail.add_argument("output", type=Path)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    settings = get_settings()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )

    args = build_parser().parse_args(argv)

    # URL and thumbnail commands never touch S3, so they skip the uploader
    if args.command == "url":
        kind = ContentKind(args.kind) if args.kind else None
        print(DeliveryURLBuilder.from_settings(settings).url_for(args.key, kind))
        return 0

    if args.command == "thumbnail-url":
        print(DeliveryURLBuilder.from_settings(settings).thumbnail_url_for(args.key))
        return 0

    if args.command == "thumbnail":
        extractor = create_thumbnail_extractor(settings)
        image = asyncio.run(extractor.extract_first_frame(args.video))
        if image is None:
            print(f"Could not extract a thumbnail from {args.video}", file=sys.stderr)
            return 1
        image.save(args.output, format="PNG")
        print(args.output)
        return 0

    kind = ContentKind(args.kind) if args.kind else guess_kind(args.path)
    try:
        # Missing configuration surfaces here as ValueError
        uploader = create_media_uploader(settings)
        output = asyncio.run(_upload(uploader, args.path, kind))
    except (UploadError, OSError, ValueError) as e:
        logger.error("Upload failed", extra={"path": str(args.path), "error": str(e)})
        print(f"Upload failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
