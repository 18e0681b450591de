"""Unit tests for settings."""

import pytest

from media_uploader.config.settings import Settings, get_settings


# ---------------------------------------------------------------------------
# Settings Tests
# ---------------------------------------------------------------------------

class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.aws_region == "us-west-1"
        assert settings.presign_expiry_seconds == 3600
        assert settings.upload_strategy == "managed"
        assert not settings.uses_cognito

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_STRATEGY", "presigned")
        monkeypatch.setenv("IMAGE_BUCKET", "prod-images")
        monkeypatch.setenv("COGNITO_IDENTITY_POOL_ID", "us-west-1:pool")

        settings = Settings(_env_file=None)

        assert settings.upload_strategy == "presigned"
        assert settings.image_bucket == "prod-images"
        assert settings.uses_cognito

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, upload_strategy="ftp")

    def test_s3_base_url_defaults_to_region(self):
        settings = Settings(_env_file=None, aws_region="eu-west-1")
        assert settings.s3_base_url == "https://s3.eu-west-1.amazonaws.com"

    def test_s3_base_url_uses_override(self):
        settings = Settings(_env_file=None, s3_endpoint_url="http://localhost:9000/")
        assert settings.s3_base_url == "http://localhost:9000"

    def test_mock_mode_needs_nothing(self):
        settings = Settings(_env_file=None, upload_strategy="mock", image_bucket="")
        assert settings.validate_required_fields() == []

    def test_reports_missing_bucket_and_half_key_pair(self):
        settings = Settings(
            _env_file=None,
            video_bucket="",
            aws_secret_access_key="secret",
        )
        assert settings.validate_required_fields() == ["VIDEO_BUCKET", "AWS_ACCESS_KEY_ID"]

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
