"""
Media upload logic.

Contains the upload service, domain models, key naming and CDN URL
derivation.
"""

from .delivery import DeliveryURLBuilder, kind_from_key, thumbnail_key
from .errors import (
    CredentialsError,
    InvalidInputError,
    LocalIOError,
    SigningError,
    ThumbnailError,
    TransferError,
    UploadError,
)
from .models import ContentKind, UploadPhase, UploadRequest, UploadResult
from .naming import generate_object_key
from .progress import ByteCountProgress, ProgressRelay
from .service import MediaUploader, UploadStrategy

__all__ = [
    "ByteCountProgress",
    "ContentKind",
    "CredentialsError",
    "DeliveryURLBuilder",
    "InvalidInputError",
    "LocalIOError",
    "MediaUploader",
    "ProgressRelay",
    "SigningError",
    "ThumbnailError",
    "TransferError",
    "UploadError",
    "UploadPhase",
    "UploadRequest",
    "UploadResult",
    "UploadStrategy",
    "generate_object_key",
    "kind_from_key",
    "thumbnail_key",
]
