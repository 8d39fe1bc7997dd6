"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from diagramhub.core.config import (
    DEFAULT_JWT_SECRET,
    ConfigurationError,
    Environment,
    Settings,
    StorageSettings,
)

SAFE = {
    "jwt_secret_key": "0" * 64,
    "cors_allowed_origins": "https://diagrams.example.com",
}


class TestProductionValidation:

    def test_defaults_block_production(self):
        settings = Settings(environment=Environment.PRODUCTION, auth_mode="jwt", jwt_secret_key=DEFAULT_JWT_SECRET)
        with pytest.raises(ConfigurationError, match="JWT_SECRET_KEY"):
            settings.validate_production_config()

    def test_defaults_allowed_in_development(self):
        Settings(environment=Environment.DEVELOPMENT, jwt_secret_key=DEFAULT_JWT_SECRET).validate_production_config()

    def test_safe_production_config_passes(self):
        Settings(environment=Environment.PRODUCTION, auth_mode="jwt", **SAFE).validate_production_config()

    def test_localhost_origin_is_flagged(self):
        settings = Settings(auth_mode="jwt", jwt_secret_key="x" * 32, cors_allowed_origins="http://localhost:3000")
        assert any("local origins" in p for p in settings.insecure_settings())

    def test_sftp_without_known_hosts_is_flagged(self):
        storage = StorageSettings(
            driver="ftp",
            ftp={"host": "sftp.test", "user": "u", "public_url": "https://cdn.test"},
        )
        settings = Settings(auth_mode="jwt", storage=storage, **SAFE)
        assert settings.insecure_settings() == [
            "STORAGE__FTP__KNOWN_HOSTS_FILE is unset; SFTP host keys are not verified"
        ]


class TestFieldValidation:

    def test_wildcard_cors_rejected(self):
        with pytest.raises(ValueError, match="explicitly"):
            Settings(cors_allowed_origins="*").get_cors_origins()

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_upload_timeout_zero_disables_deadline(self):
        assert Settings(upload_timeout_seconds=0).upload_timeout is None
        assert Settings(upload_timeout_seconds=5).upload_timeout == 5


class TestStorageSettings:

    def test_local_is_default(self):
        assert StorageSettings().driver == "local"

    def test_s3_requires_credentials(self):
        with pytest.raises(ValidationError, match="storage.s3"):
            StorageSettings(driver="s3", s3={"bucket": "diagrams"})

    def test_ftp_requires_host(self):
        with pytest.raises(ValidationError, match="storage.ftp"):
            StorageSettings(driver="ftp")
