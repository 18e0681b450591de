"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (or a local .env file)
with defaults matching the production buckets and CDN distributions.
Every uploader is built from one explicit Settings instance, so tests can
construct their own without touching the environment.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Uploader settings loaded from environment variables.

    All settings can be overridden via environment variables of the same
    name (case-insensitive), e.g. IMAGE_BUCKET or UPLOAD_STRATEGY.
    """

    # AWS / Identity
    aws_region: str = Field(
        default="us-west-1",
        description="Region for S3 and the Cognito identity pool"
    )
    cognito_identity_pool_id: Optional[str] = Field(
        default=None,
        description="Cognito identity pool used to obtain temporary credentials"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="Static access key. Only used when no identity pool is set."
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="Static secret key. Only used when no identity pool is set."
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override for the S3 endpoint (MinIO, localstack). Defaults to the regional AWS endpoint."
    )

    # Buckets
    image_bucket: str = Field(
        default="insource-images",
        description="Bucket receiving image uploads"
    )
    video_bucket: str = Field(
        default="insource-videos",
        description="Bucket receiving video uploads"
    )

    # CDN delivery
    images_cdn_base_url: str = Field(
        default="https://images.cdn.example.com/",
        description="Public CDN base for images. The object key is appended verbatim."
    )
    videos_cdn_base_url: str = Field(
        default="https://videos.cdn.example.com/",
        description="Public CDN base for videos. The object key is appended verbatim."
    )
    thumbnails_cdn_base_url: str = Field(
        default="https://thumbnails.cdn.example.com/",
        description="Public CDN base for the rendered first-frame video thumbnails"
    )

    # Upload behaviour
    upload_strategy: Literal["presigned", "managed", "mock"] = Field(
        default="managed",
        description="presigned: signed PUT URL + direct HTTP PUT. managed: boto3 transfer manager. mock: in-memory."
    )
    presign_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of a pre-signed PUT URL"
    )
    upload_chunk_size: int = Field(
        default=64 * 1024,
        description="Chunk size for streaming a pre-signed PUT body (progress granularity)"
    )
    http_timeout_seconds: float = Field(
        default=300.0,
        description="Timeout for the HTTP PUT to a pre-signed URL"
    )

    # Thumbnails
    ffmpeg_path: str = Field(
        default="ffmpeg",
        description="Path to the ffmpeg binary"
    )
    thumbnail_timeout_seconds: int = Field(
        default=10,
        description="Timeout for a single-frame ffmpeg decode"
    )
    thumbnail_mock_mode: bool = Field(
        default=False,
        description="Return a placeholder image instead of invoking ffmpeg"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def uses_cognito(self) -> bool:
        return bool(self.cognito_identity_pool_id)

    @property
    def s3_base_url(self) -> str:
        """
        Base endpoint used to build public object URLs.

        Mirrors the SDK's configured endpoint: the explicit override when
        set, otherwise the regional S3 endpoint.
        """
        if self.s3_endpoint_url:
            return self.s3_endpoint_url.rstrip("/")
        return f"https://s3.{self.aws_region}.amazonaws.com"

    def validate_required_fields(self) -> list[str]:
        """
        Return the names of settings that are required but missing.

        Requirements depend on the selected strategy, so this runs
        separately from Pydantic's field validation.
        """
        missing = []

        if self.upload_strategy == "mock":
            return missing

        if not self.image_bucket:
            missing.append("IMAGE_BUCKET")
        if not self.video_bucket:
            missing.append("VIDEO_BUCKET")

        # Static keys come as a pair; a lone one is a misconfiguration
        if not self.uses_cognito:
            if self.aws_access_key_id and not self.aws_secret_access_key:
                missing.append("AWS_SECRET_ACCESS_KEY")
            if self.aws_secret_access_key and not self.aws_access_key_id:
                missing.append("AWS_ACCESS_KEY_ID")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. Tests can call
    get_settings.cache_clear() or build Settings directly.
    """
    return Settings()
