"""Application configuration with validation."""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Storage sections (exactly one is active, chosen by ``storage.driver``)
# ---------------------------------------------------------------------------

class LocalStorageSettings(BaseModel):
    path: str = "./storage"
    public_url: str = "http://localhost:8000/storage"


class FtpStorageSettings(BaseModel):
    host: str = ""
    port: int = 22
    user: str = ""
    password: str = ""
    base_dir: str = ""
    public_url: str = ""
    # Server-side root served at public_url; removed from paths when building URLs.
    url_strip_prefix: str = "upload"
    timeout: float = Field(default=10.0, description="SSH handshake timeout in seconds")
    # OpenSSH known_hosts file; empty accepts unknown host keys.
    known_hosts_file: str = ""


class S3StorageSettings(BaseModel):
    endpoint: str = ""
    access_key: str = ""
    secret_key: str = ""
    bucket: str = ""
    region: Optional[str] = None
    use_ssl: bool = True
    path_style: bool = False
    url_expires_seconds: int = 3600


class StorageSettings(BaseModel):
    """Discriminated storage configuration."""

    driver: Literal["local", "ftp", "s3"] = "local"
    local: LocalStorageSettings = LocalStorageSettings()
    ftp: FtpStorageSettings = FtpStorageSettings()
    s3: S3StorageSettings = S3StorageSettings()

    @model_validator(mode="after")
    def _require_active_section(self) -> "StorageSettings":
        if self.driver == "ftp":
            missing = [name for name in ("host", "user", "public_url") if not getattr(self.ftp, name)]
            if missing:
                raise ValueError(f"storage.ftp is missing required fields: {missing}")
        elif self.driver == "s3":
            missing = [
                name for name in ("endpoint", "access_key", "secret_key", "bucket")
                if not getattr(self.s3, name)
            ]
            if missing:
                raise ValueError(f"storage.s3 is missing required fields: {missing}")
        return self


class Settings(BaseSettings):
    """
    Application settings with validation.

    Nested sections are read from ``SECTION__FIELD`` environment variables,
    e.g. ``STORAGE__DRIVER=s3`` and ``STORAGE__S3__BUCKET=diagrams``.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./diagramhub.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during traffic bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Authentication
    # AUTH_MODE=jwt: HS256 bearer token whose ``sub`` is the numeric user id.
    # AUTH_MODE=header: trust X-User-ID set by an authenticating gateway.
    auth_mode: Literal["jwt", "header"] = Field(default="jwt")
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")

    # Rate Limiting
    rate_limit_per_minute: int = Field(
        default=120,
        description="Maximum requests per client per minute (0 = disabled)"
    )

    # File storage
    storage: StorageSettings = StorageSettings()
    upload_timeout_seconds: float = Field(
        default=60.0,
        description="Deadline for a single file upload; 0 disables the deadline"
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024)

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """Explicit origins from CORS_ALLOWED_ORIGINS. A wildcard is a config error."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS must list origins explicitly; \"*\" is not accepted")
        return origins

    @property
    def upload_timeout(self) -> Optional[float]:
        return self.upload_timeout_seconds if self.upload_timeout_seconds > 0 else None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    def insecure_settings(self) -> List[str]:
        """Settings that are acceptable in development but not in production."""
        problems: List[str] = []
        if self.auth_mode == "jwt" and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            problems.append("JWT_SECRET_KEY is the built-in default (generate one: openssl rand -hex 32)")

        local_origins = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local_origins:
            problems.append(f"CORS_ALLOWED_ORIGINS includes local origins {local_origins}")

        if self.storage.driver == "s3" and not self.storage.s3.use_ssl:
            problems.append("STORAGE__S3__USE_SSL is off; credentials would cross the network in clear text")
        if self.storage.driver == "ftp" and not self.storage.ftp.known_hosts_file:
            problems.append("STORAGE__FTP__KNOWN_HOSTS_FILE is unset; SFTP host keys are not verified")
        return problems

    def validate_production_config(self) -> None:
        """Raise ConfigurationError in production when ``insecure_settings`` finds anything."""
        if self.environment != Environment.PRODUCTION:
            return
        problems = self.insecure_settings()
        if problems:
            raise ConfigurationError(
                "Insecure production configuration:\n  - " + "\n  - ".join(problems)
            )


    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"
        case_sensitive = False


# Global settings instance
settings = Settings()
