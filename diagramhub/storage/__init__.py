"""File storage backends, selected once at startup by ``storage.driver``."""

from ..core.config import StorageSettings
from .base import CHUNK_SIZE, BaseStorage, FileStorage, normalize_key
from .local import LocalStorage
from .s3 import S3Storage
from .sftp import SftpStorage


def create_storage(config: StorageSettings) -> FileStorage:
    """Build the backend named by ``config.driver``."""
    if config.driver == "local":
        return LocalStorage(config.local.path, config.local.public_url)
    if config.driver == "ftp":
        ftp = config.ftp
        return SftpStorage(
            host=ftp.host,
            user=ftp.user,
            password=ftp.password,
            public_url=ftp.public_url,
            port=ftp.port,
            base_dir=ftp.base_dir,
            url_strip_prefix=ftp.url_strip_prefix,
            timeout=ftp.timeout,
            known_hosts_file=ftp.known_hosts_file,
        )
    if config.driver == "s3":
        s3 = config.s3
        return S3Storage(
            bucket=s3.bucket,
            endpoint_url=s3.endpoint,
            access_key=s3.access_key,
            secret_key=s3.secret_key,
            region=s3.region,
            use_ssl=s3.use_ssl,
            path_style=s3.path_style,
            url_expires_seconds=s3.url_expires_seconds,
        )
    raise ValueError(f"Unknown storage driver: {config.driver}")


__all__ = [
    "CHUNK_SIZE",
    "BaseStorage",
    "FileStorage",
    "LocalStorage",
    "S3Storage",
    "SftpStorage",
    "create_storage",
    "normalize_key",
]
