"""Tests for environment-driven settings."""

from pagewright.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PAGEWRIGHT_BLOB_BACKEND", raising=False)
        settings = Settings(_env_file=None)
        assert settings.blob_backend == "memory"
        assert settings.assets_api_url is None
        assert settings.content_api_url is None
        assert settings.default_tenant == "default"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PAGEWRIGHT_MINIO_BUCKET", "sites")
        monkeypatch.setenv("PAGEWRIGHT_SITES_PREFIX", "published")
        monkeypatch.setenv("PAGEWRIGHT_MINIO_SECURE", "true")
        settings = Settings(_env_file=None)
        assert settings.minio_bucket == "sites"
        assert settings.sites_prefix == "published"
        assert settings.minio_secure is True

    def test_content_service_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAGEWRIGHT_CONTENT_API_URL", "https://content.example.com")
        monkeypatch.setenv("PAGEWRIGHT_CONTENT_API_TIMEOUT", "2.5")
        settings = Settings(_env_file=None)
        assert settings.content_api_url == "https://content.example.com"
        assert settings.content_api_timeout == 2.5
