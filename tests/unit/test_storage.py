"""
Unit tests for the S3 upload strategies.

boto3 clients are replaced with MagicMocks and HTTP with
httpx.MockTransport, so these run without AWS or a network.
"""

import os
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError

from media_uploader.config.settings import Settings
from media_uploader.core.uploads.errors import LocalIOError, SigningError, TransferError
from media_uploader.core.uploads.models import ContentKind, UploadPhase, UploadRequest
from media_uploader.core.uploads.progress import ProgressRelay
from media_uploader.infrastructure.storage.client import (
    MockUploadStrategy,
    create_upload_strategy,
    public_object_url,
)
from media_uploader.infrastructure.storage.presigned import PresignedURLStrategy
from media_uploader.infrastructure.storage.transfer import ManagedTransferStrategy

BASE_URL = "https://s3.us-west-1.amazonaws.com"
SIGNED_URL = "https://test-images.s3.amazonaws.com/KEY.jpeg?X-Amz-Signature=abc"


def _client_error(code: str = "AccessDenied") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "denied"}}, "PutObject")


def _image_request(data: bytes = b"0123456789") -> UploadRequest:
    return UploadRequest(kind=ContentKind.IMAGE, key="KEY.jpeg", bucket="test-images", data=data)


class TestPublicObjectURL:

    def test_joins_endpoint_bucket_and_key(self):
        assert public_object_url(BASE_URL, "b", "k.jpeg") == f"{BASE_URL}/b/k.jpeg"

    def test_trailing_slash_on_endpoint(self):
        assert public_object_url(BASE_URL + "/", "b", "k") == f"{BASE_URL}/b/k"


# ---------------------------------------------------------------------------
# Pre-signed URL Strategy Tests
# ---------------------------------------------------------------------------

class TestPresignedURLStrategy:
    """Tests for sign-then-PUT uploads."""

    @pytest.fixture
    def s3_client(self) -> MagicMock:
        client = MagicMock()
        client.generate_presigned_url.return_value = SIGNED_URL
        return client

    def _strategy(self, s3_client, handler) -> PresignedURLStrategy:
        return PresignedURLStrategy(
            s3_client,
            base_url=BASE_URL,
            chunk_size=4,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    @pytest.mark.asyncio
    async def test_signs_put_for_bucket_key_and_type(self, s3_client):
        strategy = self._strategy(s3_client, lambda request: httpx.Response(200))

        await strategy.upload(_image_request(), ProgressRelay(None))

        s3_client.generate_presigned_url.assert_called_once_with(
            ClientMethod="put_object",
            Params={"Bucket": "test-images", "Key": "KEY.jpeg", "ContentType": "image/jpeg"},
            ExpiresIn=3600,
            HttpMethod="PUT",
        )

    @pytest.mark.asyncio
    async def test_puts_body_with_signed_headers(self, s3_client):
        sent = {}

        def handler(request: httpx.Request) -> httpx.Response:
            sent["method"] = request.method
            sent["url"] = str(request.url)
            sent["headers"] = request.headers
            sent["body"] = request.content
            return httpx.Response(200)

        strategy = self._strategy(s3_client, handler)
        await strategy.upload(_image_request(), ProgressRelay(None))

        assert sent["method"] == "PUT"
        assert sent["url"] == SIGNED_URL
        assert sent["body"] == b"0123456789"
        assert sent["headers"]["content-type"] == "image/jpeg"
        assert sent["headers"]["content-length"] == "10"
        assert sent["headers"]["cache-control"] == "no-cache"
        assert "transfer-encoding" not in sent["headers"]

    @pytest.mark.asyncio
    async def test_success_returns_object_url_and_key(self, s3_client):
        strategy = self._strategy(s3_client, lambda request: httpx.Response(200))
        request = _image_request()

        result = await strategy.upload(request, ProgressRelay(None))

        assert result.key == "KEY.jpeg"
        assert result.url == f"{BASE_URL}/test-images/KEY.jpeg"
        assert result.kind is ContentKind.IMAGE
        assert request.phase is UploadPhase.TRANSFERRING

    @pytest.mark.asyncio
    async def test_reports_fraction_per_chunk(self, s3_client):
        seen = []
        strategy = self._strategy(s3_client, lambda request: httpx.Response(200))

        await strategy.upload(_image_request(), ProgressRelay(seen.append))

        assert seen == [0.4, 0.8, 1.0]

    @pytest.mark.asyncio
    async def test_signing_failure_raises_before_any_put(self, s3_client):
        s3_client.generate_presigned_url.side_effect = _client_error()
        handler = MagicMock(return_value=httpx.Response(200))
        strategy = self._strategy(s3_client, handler)

        with pytest.raises(SigningError):
            await strategy.upload(_image_request(), ProgressRelay(None))

        handler.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [201, 204, 403, 500])
    async def test_non_200_is_failure(self, s3_client, status):
        """Only 200 counts; even other 2xx codes are failures."""
        strategy = self._strategy(s3_client, lambda request: httpx.Response(status))

        with pytest.raises(TransferError) as excinfo:
            await strategy.upload(_image_request(), ProgressRelay(None))

        assert excinfo.value.status_code == status

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self, s3_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        strategy = self._strategy(s3_client, handler)

        with pytest.raises(TransferError) as excinfo:
            await strategy.upload(_image_request(), ProgressRelay(None))

        assert excinfo.value.status_code is None

    @pytest.mark.asyncio
    async def test_reads_file_backed_request(self, s3_client, tmp_path):
        video = tmp_path / "clip.mov"
        video.write_bytes(b"moov")
        sent = {}

        def handler(request):
            sent["body"] = request.content
            sent["type"] = request.headers["content-type"]
            return httpx.Response(200)

        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.mov", bucket="test-videos", file_path=video,
        )
        await self._strategy(s3_client, handler).upload(request, ProgressRelay(None))

        assert sent == {"body": b"moov", "type": "movie/mov"}

    @pytest.mark.asyncio
    async def test_missing_file_is_local_io_error(self, s3_client, tmp_path):
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.mov", bucket="test-videos",
            file_path=tmp_path / "missing.mov",
        )
        strategy = self._strategy(s3_client, lambda r: httpx.Response(200))

        with pytest.raises(LocalIOError):
            await strategy.upload(request, ProgressRelay(None))

        s3_client.generate_presigned_url.assert_not_called()


# ---------------------------------------------------------------------------
# Managed Transfer Strategy Tests
# ---------------------------------------------------------------------------

class FakeTransfer:
    """Stands in for upload_file / upload_fileobj and records each call."""

    def __init__(self) -> None:
        self.calls = []

    def __call__(self, source, bucket, key, ExtraArgs=None, Callback=None, Config=None):
        if isinstance(source, str):
            with open(source, "rb") as f:
                body = f.read()
        else:
            body = source.read()

        self.calls.append({
            "source": source,
            "bucket": bucket,
            "key": key,
            "extra_args": ExtraArgs,
            "body": body,
        })

        half = len(body) // 2
        Callback(half)
        Callback(len(body) - half)


class TestManagedTransferStrategy:
    """Tests for uploads through boto3's transfer manager."""

    @pytest.fixture
    def s3_client(self) -> MagicMock:
        client = MagicMock()
        client.upload_file.side_effect = FakeTransfer()
        client.upload_fileobj.side_effect = FakeTransfer()
        return client

    @pytest.fixture
    def strategy(self, s3_client) -> ManagedTransferStrategy:
        return ManagedTransferStrategy(s3_client, base_url=BASE_URL)

    @pytest.mark.asyncio
    async def test_image_bytes_are_staged_to_temp_file(self, s3_client, strategy):
        request = _image_request(b"jpegdata")

        result = await strategy.upload(request, ProgressRelay(None))

        call = s3_client.upload_file.side_effect.calls[0]
        assert call["body"] == b"jpegdata"
        assert call["source"].endswith(".jpeg")
        assert call["bucket"] == "test-images"
        assert call["key"] == "KEY.jpeg"
        assert call["extra_args"] == {"ContentType": "image/jpeg"}
        assert not os.path.exists(call["source"])
        assert result.url == f"{BASE_URL}/test-images/KEY.jpeg"

    @pytest.mark.asyncio
    async def test_staged_file_removed_on_failure(self, s3_client, strategy):
        staged = []

        def failing(source, *args, **kwargs):
            staged.append(source)
            raise S3UploadFailedError("Failed to upload")

        s3_client.upload_file.side_effect = failing

        with pytest.raises(TransferError):
            await strategy.upload(_image_request(), ProgressRelay(None))

        assert staged and not os.path.exists(staged[0])

    @pytest.mark.asyncio
    async def test_video_bytes_upload_from_buffer(self, s3_client, strategy):
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos", data=b"videobytes",
        )

        await strategy.upload(request, ProgressRelay(None))

        s3_client.upload_file.assert_not_called()
        call = s3_client.upload_fileobj.side_effect.calls[0]
        assert call["body"] == b"videobytes"
        assert call["extra_args"] == {"ContentType": "movie/mov"}

    @pytest.mark.asyncio
    async def test_file_request_uploads_path(self, s3_client, strategy, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"ftypisom")
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.mp4", bucket="test-videos", file_path=video,
        )

        result = await strategy.upload(request, ProgressRelay(None))

        call = s3_client.upload_file.side_effect.calls[0]
        assert call["source"] == str(video)
        assert video.exists()
        assert request.phase is UploadPhase.TRANSFERRING
        assert result.key == "KEY.mp4"

    @pytest.mark.asyncio
    async def test_progress_is_cumulative_fraction(self, strategy):
        seen = []

        await strategy.upload(_image_request(b"12345678"), ProgressRelay(seen.append))

        assert seen == [0.5, 1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [S3UploadFailedError("boom"), _client_error("NoSuchBucket")])
    async def test_transfer_failure(self, s3_client, strategy, error):
        s3_client.upload_fileobj.side_effect = error
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos", data=b"v",
        )

        with pytest.raises(TransferError):
            await strategy.upload(request, ProgressRelay(None))

    @pytest.mark.asyncio
    async def test_missing_file_is_local_io_error(self, strategy, tmp_path):
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos",
            file_path=tmp_path / "nope.MOV",
        )

        with pytest.raises(LocalIOError):
            await strategy.upload(request, ProgressRelay(None))

    @pytest.mark.asyncio
    async def test_staging_failure_is_local_io_error(self, strategy, monkeypatch):
        def broken(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(
            "media_uploader.infrastructure.storage.transfer.tempfile.NamedTemporaryFile",
            broken,
        )

        with pytest.raises(LocalIOError, match="disk full"):
            await strategy.upload(_image_request(), ProgressRelay(None))

    @pytest.mark.asyncio
    async def test_directory_path_is_local_io_error(self, strategy, tmp_path):
        """stat() succeeds on a directory; the failure comes from opening it."""
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos", file_path=tmp_path,
        )

        with pytest.raises(LocalIOError):
            await strategy.upload(request, ProgressRelay(None))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        PermissionError(13, "Permission denied"),
        FileNotFoundError(2, "No such file or directory"),
    ])
    async def test_unreadable_source_is_local_io_error(self, s3_client, strategy, tmp_path, error):
        video = tmp_path / "clip.MOV"
        video.write_bytes(b"moov")
        s3_client.upload_file.side_effect = error
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos", file_path=video,
        )

        with pytest.raises(LocalIOError) as excinfo:
            await strategy.upload(request, ProgressRelay(None))

        assert excinfo.value.__cause__ is error


# ---------------------------------------------------------------------------
# Mock Strategy and Factory Tests
# ---------------------------------------------------------------------------

class TestMockUploadStrategy:

    @pytest.mark.asyncio
    async def test_stores_object_in_memory(self):
        strategy = MockUploadStrategy()

        result = await strategy.upload(_image_request(b"img"), ProgressRelay(None))

        assert strategy.get_object("test-images", "KEY.jpeg") == b"img"
        assert strategy.get_content_type("test-images", "KEY.jpeg") == "image/jpeg"
        assert result.url == "mock://storage/test-images/KEY.jpeg"

    @pytest.mark.asyncio
    async def test_reports_start_and_end(self):
        seen = []
        await MockUploadStrategy().upload(_image_request(), ProgressRelay(seen.append))
        assert seen == [0.0, 1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "missing.MOV"])
    async def test_unreadable_path_is_local_io_error(self, tmp_path, name):
        path = tmp_path / name if name else tmp_path
        request = UploadRequest(
            kind=ContentKind.VIDEO, key="KEY.MOV", bucket="test-videos", file_path=path,
        )

        with pytest.raises(LocalIOError):
            await MockUploadStrategy().upload(request, ProgressRelay(None))


class TestCreateUploadStrategy:

    def test_mock(self):
        settings = Settings(_env_file=None, upload_strategy="mock")
        assert isinstance(create_upload_strategy(settings), MockUploadStrategy)

    def test_presigned(self):
        settings = Settings(_env_file=None, upload_strategy="presigned")
        strategy = create_upload_strategy(settings, s3_client=MagicMock())
        assert isinstance(strategy, PresignedURLStrategy)

    def test_managed(self):
        settings = Settings(_env_file=None, upload_strategy="managed")
        strategy = create_upload_strategy(settings, s3_client=MagicMock())
        assert isinstance(strategy, ManagedTransferStrategy)
