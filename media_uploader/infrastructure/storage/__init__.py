"""
Object storage integration for image and video uploads.

Supports AWS S3 (and S3-compatible endpoints) via pre-signed URLs or
boto3's managed transfer, plus an in-memory mock for local development.
"""

from .client import (
    MockUploadStrategy,
    UploadStrategy,
    create_s3_client,
    create_upload_strategy,
    public_object_url,
)
from .presigned import PresignedURLStrategy
from .transfer import ManagedTransferStrategy

__all__ = [
    "ManagedTransferStrategy",
    "MockUploadStrategy",
    "PresignedURLStrategy",
    "UploadStrategy",
    "create_s3_client",
    "create_upload_strategy",
    "public_object_url",
]
