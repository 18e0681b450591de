"""
Upload error taxonomy.

Every failure of an upload surfaces as exactly one of these. None of them
are retried; callers treat any of them as a terminal outcome.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for all upload failures."""
    pass


class InvalidInputError(UploadError):
    """Raised when the caller's input cannot be uploaded (e.g. undecodable image)."""
    pass


class CredentialsError(UploadError):
    """Raised when temporary credentials cannot be obtained from the identity broker."""
    pass


class SigningError(UploadError):
    """Raised when the provider refuses or fails to sign an upload URL."""
    pass


class TransferError(UploadError):
    """
    Raised when the transfer itself fails.

    Covers non-200 responses, network errors and managed transfer failures.
    status_code is set only when an HTTP response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LocalIOError(UploadError):
    """Raised when staging to or reading from the local filesystem fails."""
    pass


class ThumbnailError(UploadError):
    """Raised when a frame cannot be decoded from a local video."""
    pass
