"""Object key generation."""

import uuid
from pathlib import PurePath
from typing import Optional, Union

from .models import ContentKind


def generate_object_key(
    kind: ContentKind,
    source: Optional[Union[str, PurePath]] = None,
) -> str:
    """
    Build a unique object key for a new upload.

    The key is an uppercase UUID4 followed by the source file's extension
    (case preserved). Without a source, or when the source has no
    extension, the kind's default extension is used.
    """
    extension = ""
    if source is not None:
        extension = PurePath(source).suffix

    if not extension:
        extension = kind.default_extension

    return f"{str(uuid.uuid4()).upper()}{extension}"
