"""
Domain models for media uploads.

These models describe a single upload from creation to its terminal
outcome. They have no dependency on boto3, httpx or the filesystem.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import InvalidInputError


class ContentKind(Enum):
    """
    The two kinds of content the app uploads.

    The kind decides the MIME type the upload is signed with, the default
    key extension and (through settings) the target bucket.
    """
    IMAGE = "image"
    VIDEO = "video"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def default_extension(self) -> str:
        return _DEFAULT_EXTENSIONS[self]


# The video MIME type is what the existing bucket pipeline is configured for
_MIME_TYPES = {
    ContentKind.IMAGE: "image/jpeg",
    ContentKind.VIDEO: "movie/mov",
}

_DEFAULT_EXTENSIONS = {
    ContentKind.IMAGE: ".jpeg",
    ContentKind.VIDEO: ".MOV",
}


class UploadPhase(Enum):
    """
    Lifecycle of one upload.

    CREATED -> SIGNING | STAGING -> TRANSFERRING -> SUCCEEDED | FAILED

    SIGNING and STAGING are both optional: a managed transfer of a file
    that is already on disk goes straight to TRANSFERRING. FAILED is
    reachable from every non-terminal phase.
    """
    CREATED = "created"
    SIGNING = "signing"
    STAGING = "staging"
    TRANSFERRING = "transferring"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadPhase.SUCCEEDED, UploadPhase.FAILED)


_ALLOWED_TRANSITIONS = {
    UploadPhase.CREATED: {UploadPhase.SIGNING, UploadPhase.STAGING, UploadPhase.TRANSFERRING},
    UploadPhase.SIGNING: {UploadPhase.TRANSFERRING},
    UploadPhase.STAGING: {UploadPhase.TRANSFERRING},
    UploadPhase.TRANSFERRING: {UploadPhase.SUCCEEDED},
    UploadPhase.SUCCEEDED: set(),
    UploadPhase.FAILED: set(),
}


@dataclass
class UploadRequest:
    """
    One upload, from creation until its outcome is delivered.

    Exactly one of data or file_path is set. Requests are created per call
    and discarded once the result or error has been returned.
    """
    kind: ContentKind
    key: str
    bucket: str
    data: Optional[bytes] = None
    file_path: Optional[Path] = None
    phase: UploadPhase = field(default=UploadPhase.CREATED)

    def __post_init__(self) -> None:
        if (self.data is None) == (self.file_path is None):
            raise InvalidInputError("Upload needs exactly one of data or file_path")
        if self.file_path is not None:
            self.file_path = Path(self.file_path)

    @property
    def is_in_memory(self) -> bool:
        return self.data is not None

    @property
    def mime_type(self) -> str:
        return self.kind.mime_type

    def advance(self, phase: UploadPhase) -> None:
        """Move to the next phase, rejecting anything out of order."""
        allowed = _ALLOWED_TRANSITIONS[self.phase]
        if phase is UploadPhase.FAILED and not self.phase.is_terminal:
            allowed = allowed | {UploadPhase.FAILED}

        if phase not in allowed:
            raise ValueError(
                f"Cannot move upload {self.key} from {self.phase.value} to {phase.value}"
            )
        self.phase = phase


@dataclass(frozen=True)
class UploadResult:
    """
    Successful outcome of an upload.

    url is the public object URL (endpoint/bucket/key). The kind travels
    with the key so delivery URLs never need to guess it from the name.
    """
    url: str
    key: str
    kind: ContentKind
