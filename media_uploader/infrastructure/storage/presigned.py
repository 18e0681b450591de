"""
Pre-signed URL upload strategy.

The provider signs a short-lived PUT URL for one bucket/key/content-type
and the body is sent straight to that URL with httpx. The signed
Content-Type must be sent back unchanged or the provider rejects the PUT.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from ...core.uploads.errors import LocalIOError, SigningError, TransferError
from ...core.uploads.models import UploadPhase, UploadRequest, UploadResult
from ...core.uploads.progress import ProgressRelay
from .client import public_object_url

logger = logging.getLogger(__name__)


class PresignedURLStrategy:
    """
    Uploads by signing a PUT URL and sending the bytes directly.

    Only HTTP 200 counts as success. Signing and transfer failures are
    raised once and never retried.
    """

    def __init__(
        self,
        s3_client,
        base_url: str,
        expiry_seconds: int = 3600,
        chunk_size: int = 64 * 1024,
        timeout_seconds: float = 300.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            s3_client: boto3 S3 client used only for signing
            base_url: S3 endpoint used to build the object URL
            expiry_seconds: How long the signed URL stays valid
            chunk_size: Body chunk size; progress is reported per chunk
            timeout_seconds: HTTP timeout when no http_client is given
            http_client: Shared client to send PUTs with. When omitted,
                each upload opens and closes its own client.
        """
        self._s3_client = s3_client
        self._base_url = base_url
        self._expiry_seconds = expiry_seconds
        self._chunk_size = chunk_size
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def upload(
        self,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> UploadResult:
        data = await self._load_body(request)

        request.advance(UploadPhase.SIGNING)
        signed_url = await asyncio.to_thread(self.get_presigned_put_url, request)

        request.advance(UploadPhase.TRANSFERRING)
        await self._put(signed_url, data, request, progress)

        logger.info(
            "Uploaded via pre-signed URL",
            extra={"bucket": request.bucket, "key": request.key, "size_bytes": len(data)}
        )

        return UploadResult(
            url=public_object_url(self._base_url, request.bucket, request.key),
            key=request.key,
            kind=request.kind,
        )

    def get_presigned_put_url(self, request: UploadRequest) -> str:
        """
        Sign a PUT for the request's bucket, key and content type.

        Raises:
            SigningError: If the SDK cannot produce a signed URL
        """
        try:
            url = self._s3_client.generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": request.bucket,
                    "Key": request.key,
                    "ContentType": request.mime_type,
                },
                ExpiresIn=self._expiry_seconds,
                HttpMethod="PUT",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"bucket": request.bucket, "key": request.key, "error": str(e)}
            )
            raise SigningError(f"Presigned URL generation failed: {e}") from e

        logger.debug("Generated presigned PUT URL", extra={"key": request.key})
        return url

    async def _load_body(self, request: UploadRequest) -> bytes:
        if request.is_in_memory:
            return request.data

        try:
            return await asyncio.to_thread(request.file_path.read_bytes)
        except OSError as e:
            logger.error(
                "Failed to read upload source",
                extra={"path": str(request.file_path), "error": str(e)}
            )
            raise LocalIOError(f"Could not read {request.file_path}: {e}") from e

    async def _put(
        self,
        url: str,
        data: bytes,
        request: UploadRequest,
        progress: ProgressRelay,
    ) -> None:
        headers = {
            "Content-Type": request.mime_type,
            "Content-Length": str(len(data)),
            "Cache-Control": "no-cache",
        }
        body = self._stream_body(data, progress)

        try:
            if self._http_client is not None:
                response = await self._http_client.put(url, content=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.put(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "Pre-signed PUT failed",
                extra={"bucket": request.bucket, "key": request.key, "error": str(e)}
            )
            raise TransferError(f"Upload failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "Pre-signed PUT rejected",
                extra={
                    "bucket": request.bucket,
                    "key": request.key,
                    "status_code": response.status_code,
                }
            )
            raise TransferError(
                f"Upload failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def _stream_body(
        self,
        data: bytes,
        progress: ProgressRelay,
    ) -> AsyncIterator[bytes]:
        """Yield the body in chunks, reporting the fraction sent after each."""
        total = len(data)
        if total == 0:
            progress.report(1.0)
            return

        for offset in range(0, total, self._chunk_size):
            chunk = data[offset:offset + self._chunk_size]
            yield chunk
            progress.report(min(offset + len(chunk), total) / total)
