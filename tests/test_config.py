"""
Tests for Storefront Configuration
==================================

Tests centralized config loading.
"""

import os
import pytest
from unittest.mock import patch
from storefront.config import StorefrontConfig, DatabaseConfig, CloudinaryConfig


class TestStorefrontConfig:
    """Test config loading."""

    def test_defaults(self):
        """Default config has sensible values."""
        config = StorefrontConfig()
        assert config.promo_codes == "NEXTGEN20:20"
        assert config.upload_max_bytes == 5 * 1024 * 1024
        assert config.redirect_delay_seconds == 3.0
        assert config.auth.cookie_name == "auth_token"
        assert config.log_level == "INFO"
        assert config.log_format == "json"

    def test_from_env(self):
        """Config loads from environment variables."""
        env = {
            "DATABASE_URL": "sqlite:///tmp/catalog.db",
            "CLOUDINARY_CLOUD_NAME": "demo",
            "CLOUDINARY_API_KEY": "key",
            "CLOUDINARY_API_SECRET": "secret",
            "JWT_SECRET": "jwt",
            "PROMO_CODES": "SAVE10:10",
            "UPLOAD_MAX_BYTES": "1024",
            "LOG_LEVEL": "DEBUG",
            "ORDER_REDIRECT_DELAY": "1.5",
        }
        with patch.dict(os.environ, env, clear=False):
            config = StorefrontConfig.from_env()
            assert config.database.is_sqlite
            assert config.database.sqlite_path == "tmp/catalog.db"
            assert config.cloudinary.is_configured
            assert config.auth.jwt_secret == "jwt"
            assert config.promo_codes == "SAVE10:10"
            assert config.upload_max_bytes == 1024
            assert config.log_level == "DEBUG"
            assert config.redirect_delay_seconds == 1.5

    def test_cors_origins_from_env(self):
        """CORS origins parsed from comma-separated string."""
        with patch.dict(os.environ, {"CORS_ORIGINS": "https://a.com,https://b.com"}):
            config = StorefrontConfig.from_env()
            assert "https://a.com" in config.cors_origins
            assert "https://b.com" in config.cors_origins


class TestDatabaseConfig:

    def test_postgres_url_is_not_sqlite(self):
        config = DatabaseConfig()
        assert not config.is_sqlite
        assert config.sqlite_path == ""

    def test_memory_database(self):
        assert DatabaseConfig(url="sqlite:///:memory:").sqlite_path == ":memory:"


class TestCloudinaryConfig:

    @pytest.mark.parametrize("cloud_name,api_key,api_secret", [
        ("", "key", "secret"),
        ("demo", "", "secret"),
        ("demo", "key", ""),
    ])
    def test_partial_credentials_not_configured(self, cloud_name, api_key, api_secret):
        assert not CloudinaryConfig(cloud_name, api_key, api_secret).is_configured
