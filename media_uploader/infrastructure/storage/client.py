"""
S3 upload strategies.

Two interchangeable ways of getting bytes into a bucket sit behind the
UploadStrategy protocol:

- presigned: sign a PUT URL, then send the body directly over HTTP
- managed: hand the file or buffer to boto3's transfer manager

A mock strategy keeps objects in memory for local development, so the
whole upload flow can be exercised without AWS credentials.
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config

from ...config.settings import Settings
from ...core.uploads.errors import LocalIOError
from ...core.uploads.models import UploadPhase, UploadRequest, UploadResult
from ...core.uploads.progress import ProgressRelay
from ...core.uploads.service import UploadStrategy
from .credentials import create_boto3_session

logger = logging.getLogger(__name__)


def public_object_url(base_url: str, bucket: str, key: str) -> str:
    """Join the S3 endpoint, bucket and key into the object's URL."""
    return f"{base_url.rstrip('/')}/{bucket}/{key}"


def create_s3_client(settings: Settings, session: Optional[boto3.Session] = None):
    """
    Create the S3 client shared by every upload of one uploader.

    The client is read-only after construction; boto3 clients are safe
    to use from multiple worker threads.
    """
    session = session or create_boto3_session(settings)

    s3_client = session.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url,
        region_name=settings.aws_region,
        config=Config(signature_version="s3v4"),
    )

    logger.info(
        "Initialized S3 client",
        extra={
            "region": settings.aws_region,
            "endpoint": settings.s3_base_url,
            "cognito": settings.uses_cognito,
        }
    )

    return s3_client


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockUploadStrategy:
    """
    In-memory upload strategy.

    Objects are stored in a dictionary keyed by (bucket, key) and URLs
    are mock URIs. Progress is reported once at the start and once at
    the end of each upload.
    """

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], bytes] = {}
        self._content_types: dict[tuple[str, str], str] = {}
        logger.info("Initialized mock upload strategy (in-memory)")

    async def upload(
        self,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> UploadResult:
        """Store the request body in memory."""
        request.advance(UploadPhase.TRANSFERRING)
        progress.report(0.0)

        if request.is_in_memory:
            data = request.data
        else:
            try:
                data = request.file_path.read_bytes()
            except OSError as e:
                logger.error(
                    "Failed to read upload source",
                    extra={"path": str(request.file_path), "error": str(e)}
                )
                raise LocalIOError(f"Could not read {request.file_path}: {e}") from e

        self._objects[(request.bucket, request.key)] = data
        self._content_types[(request.bucket, request.key)] = request.mime_type
        progress.report(1.0)

        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": request.bucket, "key": request.key, "size_bytes": len(data)}
        )

        return UploadResult(
            url=public_object_url("mock://storage", request.bucket, request.key),
            key=request.key,
            kind=request.kind,
        )

    def get_object(self, bucket: str, key: str) -> bytes:
        return self._objects[(bucket, key)]

    def get_content_type(self, bucket: str, key: str) -> str:
        return self._content_types[(bucket, key)]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_upload_strategy(
    settings: Settings,
    s3_client=None,
) -> UploadStrategy:
    """
    Create the upload strategy selected by settings.upload_strategy.

    Args:
        settings: Uploader settings
        s3_client: Pre-built S3 client; created from settings when omitted

    Returns:
        UploadStrategy implementation (presigned, managed or mock)
    """
    if settings.upload_strategy == "mock":
        return MockUploadStrategy()

    # Deferred: both strategy modules import from this one
    from .presigned import PresignedURLStrategy
    from .transfer import ManagedTransferStrategy

    if s3_client is None:
        s3_client = create_s3_client(settings)

    if settings.upload_strategy == "presigned":
        return PresignedURLStrategy(
            s3_client,
            base_url=settings.s3_base_url,
            expiry_seconds=settings.presign_expiry_seconds,
            chunk_size=settings.upload_chunk_size,
            timeout_seconds=settings.http_timeout_seconds,
        )

    if settings.upload_strategy == "managed":
        return ManagedTransferStrategy(s3_client, base_url=settings.s3_base_url)

    raise ValueError(f"Unknown upload strategy: {settings.upload_strategy}")
