"""Local filesystem storage.

Files live under ``{root}/{key}``. Uploads are written to a temporary file
in the destination directory and renamed into place on commit, so the key
is either absent or complete.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from .base import BaseStorage, normalize_key


class _LocalUploadTarget:
    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        self._path = path
        self._tmp_path = tmp_path
        self._file = os.fdopen(fd, "wb")

    def write(self, chunk: bytes) -> None:
        self._file.write(chunk)

    def commit(self) -> None:
        self._file.close()
        os.replace(self._tmp_path, self._path)

    def abort(self) -> None:
        self._file.close()
        with contextlib.suppress(FileNotFoundError):
            os.unlink(self._tmp_path)


class LocalStorage(BaseStorage):
    driver = "local"

    def __init__(self, root: str | Path, public_url: str) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._public_url = public_url.rstrip("/")

    def _path(self, key: str) -> Path:
        return self._root / key

    def get_url(self, key: str) -> str:
        return f"{self._public_url}/{normalize_key(key)}"

    # -- Blocking helpers ----------------------------------------------------

    def _open_target(self, key: str) -> _LocalUploadTarget:
        return _LocalUploadTarget(self._path(key))

    def _delete(self, key: str) -> None:
        os.remove(self._path(key))

    def _open(self, key: str) -> BinaryIO:
        path = self._path(key)
        if path.is_dir():
            raise FileNotFoundError(key)
        return open(path, "rb")

    def _stat(self, key: str) -> int:
        path = self._path(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        return path.stat().st_size
