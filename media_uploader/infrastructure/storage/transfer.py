"""
Managed transfer upload strategy.

Hands the upload to boto3's transfer manager, which takes care of
multipart chunking and concurrency. The transfer blocks, so it runs on a
worker thread; byte-count callbacks from the transfer threads are relayed
back to the event loop as a cumulative fraction.
"""

import asyncio
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from ...core.uploads.errors import LocalIOError, TransferError
from ...core.uploads.models import ContentKind, UploadPhase, UploadRequest, UploadResult
from ...core.uploads.progress import ByteCountProgress, ProgressRelay
from .client import public_object_url

logger = logging.getLogger(__name__)


class ManagedTransferStrategy:
    """
    Uploads through boto3's managed transfer (upload_file / upload_fileobj).

    In-memory images are staged to a temporary file first so they share
    the file upload path; in-memory videos are sent from a buffer.
    """

    def __init__(
        self,
        s3_client,
        base_url: str,
        transfer_config: Optional[TransferConfig] = None,
    ) -> None:
        self._s3_client = s3_client
        self._base_url = base_url
        self._transfer_config = transfer_config or TransferConfig()

    async def upload(
        self,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> UploadResult:
        if request.is_in_memory and request.kind is ContentKind.IMAGE:
            request.advance(UploadPhase.STAGING)
            staged_path = await asyncio.to_thread(self._stage, request)
            try:
                await self._upload_path(request, staged_path, progress)
            finally:
                _remove_quietly(staged_path)
        elif request.is_in_memory:
            await self._upload_buffer(request, progress)
        else:
            await self._upload_path(request, request.file_path, progress)

        url = public_object_url(self._base_url, request.bucket, request.key)
        logger.info(
            "Uploaded via managed transfer",
            extra={"bucket": request.bucket, "key": request.key, "url": url}
        )

        return UploadResult(url=url, key=request.key, kind=request.kind)

    def _stage(self, request: UploadRequest) -> Path:
        """Write in-memory bytes to a temp file named after the key."""
        try:
            with tempfile.NamedTemporaryFile(
                suffix=Path(request.key).suffix,
                delete=False,
            ) as tmp:
                tmp.write(request.data)
                return Path(tmp.name)
        except OSError as e:
            logger.error(
                "Failed to stage upload to temp file",
                extra={"key": request.key, "error": str(e)}
            )
            raise LocalIOError(f"Could not stage {request.key}: {e}") from e

    async def _upload_path(
        self,
        request: UploadRequest,
        path: Path,
        progress: ProgressRelay,
    ) -> None:
        try:
            total = path.stat().st_size
        except OSError as e:
            raise LocalIOError(f"Could not read {path}: {e}") from e

        request.advance(UploadPhase.TRANSFERRING)
        await self._run_transfer(
            request,
            self._s3_client.upload_file,
            str(path),
            ByteCountProgress(progress, total),
        )

    async def _upload_buffer(
        self,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> None:
        request.advance(UploadPhase.TRANSFERRING)
        await self._run_transfer(
            request,
            self._s3_client.upload_fileobj,
            io.BytesIO(request.data),
            ByteCountProgress(progress, len(request.data)),
        )

    async def _run_transfer(self, request, upload_fn, source, callback) -> None:
        try:
            await asyncio.to_thread(
                upload_fn,
                source,
                request.bucket,
                request.key,
                ExtraArgs={"ContentType": request.mime_type},
                Callback=callback,
                Config=self._transfer_config,
            )
        except (S3UploadFailedError, ClientError, BotoCoreError) as e:
            logger.error(
                "Managed transfer failed",
                extra={"bucket": request.bucket, "key": request.key, "error": str(e)}
            )
            raise TransferError(f"Upload failed: {e}") from e
        except OSError as e:
            # Source is a directory, unreadable, or vanished after stat()
            logger.error(
                "Failed to read upload source",
                extra={"bucket": request.bucket, "key": request.key, "error": str(e)}
            )
            raise LocalIOError(f"Could not read upload source for {request.key}: {e}") from e


def _remove_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except OSError as e:
        logger.warning("Could not remove staged file", extra={"path": str(path), "error": str(e)})
