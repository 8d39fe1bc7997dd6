"""SFTP storage over SSH (paramiko).

Every operation opens its own SSH session and closes it when done; an
opened file keeps its session alive until the file is closed. Uploads
are written to ``<path>.part`` and renamed into place on commit.

Public URLs are ``{public_url}/{base_dir/key}`` with the server-side web
root (``url_strip_prefix``, ``upload`` by default) removed from the front,
because that directory is what ``public_url`` serves.
"""

from __future__ import annotations

import contextlib
import logging
import posixpath
from typing import Any, BinaryIO, Callable, Optional, Tuple

import paramiko

from .base import BaseStorage, normalize_key

logger = logging.getLogger(__name__)

# (ssh_client, sftp_client); both expose ``close()``.
Connector = Callable[[], Tuple[Any, Any]]


class _SftpSession:
    def __init__(self, ssh: Any, sftp: Any) -> None:
        self.ssh = ssh
        self.sftp = sftp
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with contextlib.suppress(Exception):
            self.sftp.close()
        with contextlib.suppress(Exception):
            self.ssh.close()

    def __enter__(self) -> "_SftpSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def _makedirs(sftp: Any, directory: str) -> None:
    """``mkdir -p`` over SFTP."""
    if not directory or directory in (".", "/"):
        return
    current = "/" if directory.startswith("/") else ""
    for part in directory.strip("/").split("/"):
        current = posixpath.join(current, part) if current else part
        try:
            sftp.stat(current)
        except FileNotFoundError:
            sftp.mkdir(current)


class _SftpUploadTarget:
    def __init__(self, session: _SftpSession, path: str) -> None:
        self._session = session
        self._path = path
        self._part = f"{path}.part"
        _makedirs(session.sftp, posixpath.dirname(path))
        self._file = session.sftp.open(self._part, "wb")

    def write(self, chunk: bytes) -> None:
        self._file.write(chunk)

    def commit(self) -> None:
        self._file.close()
        self._session.sftp.posix_rename(self._part, self._path)
        self._session.close()

    def abort(self) -> None:
        try:
            with contextlib.suppress(Exception):
                self._file.close()
            with contextlib.suppress(OSError):
                self._session.sftp.remove(self._part)
        finally:
            self._session.close()


class _SftpReader:
    """Remote file that tears down its SSH session on close."""

    def __init__(self, handle: Any, session: _SftpSession) -> None:
        self._handle = handle
        self._session = session
        self._closed = False

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self._handle.read()
        return self._handle.read(size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._handle.close()
        finally:
            self._session.close()

    def __enter__(self) -> "_SftpReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class SftpStorage(BaseStorage):
    driver = "ftp"
    transport_errors = (OSError, paramiko.SSHException)

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        public_url: str,
        port: int = 22,
        base_dir: str = "",
        url_strip_prefix: str = "upload",
        timeout: float = 10.0,
        known_hosts_file: str = "",
        connect: Optional[Connector] = None,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._base_dir = base_dir
        self._public_url = public_url.rstrip("/")
        self._url_strip_prefix = url_strip_prefix.strip("/")
        self._timeout = timeout
        self._known_hosts_file = known_hosts_file
        self._connect_fn = connect or self._ssh_connect

    def _ssh_connect(self) -> Tuple[paramiko.SSHClient, paramiko.SFTPClient]:
        ssh = paramiko.SSHClient()
        if self._known_hosts_file:
            ssh.load_host_keys(self._known_hosts_file)
            ssh.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            ssh.connect(
                hostname=self._host,
                port=self._port,
                username=self._user,
                password=self._password,
                timeout=self._timeout,
                banner_timeout=self._timeout,
                auth_timeout=self._timeout,
                look_for_keys=False,
                allow_agent=False,
            )
            return ssh, ssh.open_sftp()
        except Exception:
            ssh.close()
            logger.warning("SFTP connect failed", extra={"host": self._host, "port": self._port})
            raise

    def _session(self) -> _SftpSession:
        return _SftpSession(*self._connect_fn())

    def _full_path(self, key: str) -> str:
        return posixpath.join(self._base_dir, key) if self._base_dir else key

    def get_url(self, key: str) -> str:
        relative = self._full_path(normalize_key(key))
        if self._url_strip_prefix:
            prefix = f"{self._url_strip_prefix}/"
            if relative.startswith(prefix):
                relative = relative[len(prefix):]
            elif relative.startswith(f"/{prefix}"):
                relative = relative[len(prefix) + 1:]
        return f"{self._public_url}/{relative.lstrip('/')}"

    # -- Blocking helpers ----------------------------------------------------

    def _open_target(self, key: str) -> _SftpUploadTarget:
        session = self._session()
        try:
            return _SftpUploadTarget(session, self._full_path(key))
        except BaseException:
            session.close()
            raise

    def _delete(self, key: str) -> None:
        with self._session() as session:
            session.sftp.remove(self._full_path(key))

    def _open(self, key: str) -> BinaryIO:
        session = self._session()
        try:
            handle = session.sftp.open(self._full_path(key), "rb")
        except BaseException:
            session.close()
            raise
        return _SftpReader(handle, session)  # type: ignore[return-value]

    def _stat(self, key: str) -> int:
        with self._session() as session:
            return session.sftp.stat(self._full_path(key)).st_size
