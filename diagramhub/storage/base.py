"""File storage interface and the cancellable upload shared by every backend.

Blocking backend I/O runs in the thread pool via ``anyio.to_thread``. An
upload copies the source stream chunk by chunk into an ``UploadTarget``
that only becomes visible at its key on ``commit()``; any failure,
deadline or cancellation calls ``abort()`` instead, so a reader never sees
a partial file. Cancellation interrupts a read or write that is blocked in
its thread rather than waiting for it to return.
"""

from __future__ import annotations

import logging
import posixpath
from functools import partial
from typing import Any, BinaryIO, Callable, Optional, Protocol, Tuple, Type, runtime_checkable

import anyio
from anyio import to_thread

from ..exceptions import (
    StorageCancelledError,
    StorageNotFoundError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def normalize_key(key: str) -> str:
    """Canonical relative key. Rejects absolute paths and parent traversal."""
    if not key or not key.strip():
        raise ValidationError("File key cannot be empty", field="key")
    if key.startswith("/") or "\\" in key:
        raise ValidationError("File key must be a relative path", field="key")
    parts = [part for part in key.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts) or not parts:
        raise ValidationError("File key cannot traverse directories", field="key")
    return posixpath.join(*parts)


@runtime_checkable
class FileStorage(Protocol):
    """Uniform blob storage addressed by relative keys."""

    driver: str

    async def upload(
        self,
        key: str,
        stream: BinaryIO,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[anyio.Event] = None,
    ) -> str:
        """Store *stream* under *key* and return the stored key.

        Raises ``StorageCancelledError`` when the deadline passes or
        *cancel_event* is set, leaving nothing at *key*.
        """
        ...

    async def delete(self, key: str) -> None:
        """Remove *key*. Raises ``StorageNotFoundError`` if it does not exist."""
        ...

    async def open(self, key: str) -> BinaryIO:
        """Readable binary stream; the caller must close it."""
        ...

    async def stat(self, key: str) -> int:
        """Size of the stored blob in bytes."""
        ...

    def get_url(self, key: str) -> str:
        """Public (or pre-signed) URL for *key*."""
        ...


class UploadTarget(Protocol):
    """Destination of one in-flight upload. All methods block."""

    def write(self, chunk: bytes) -> None: ...

    def commit(self) -> None: ...

    def abort(self) -> None: ...


class BaseStorage:
    """Shared upload template and error translation.

    Subclasses implement ``_open_target`` and the blocking ``_delete``,
    ``_open``, ``_stat`` helpers. Missing keys surface from those helpers
    as ``FileNotFoundError``; ``transport_errors`` lists what counts as a
    backend outage.
    """

    driver = "base"
    transport_errors: Tuple[Type[BaseException], ...] = (OSError,)

    # -- Upload --------------------------------------------------------------

    async def upload(
        self,
        key: str,
        stream: BinaryIO,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[anyio.Event] = None,
    ) -> str:
        key = normalize_key(key)
        if timeout is not None and timeout <= 0:
            raise StorageCancelledError(key, "timed out")
        if cancel_event is not None and cancel_event.is_set():
            raise StorageCancelledError(key)

        target = await self._call(key, self._open_target, key)
        try:
            error: Optional[Exception] = None
            with anyio.move_on_after(timeout) as scope:
                async with anyio.create_task_group() as tg:
                    if cancel_event is not None:
                        tg.start_soon(self._cancel_when_set, cancel_event, scope)
                    try:
                        written = await self._pump(stream, target)
                    except Exception as e:
                        # Raised after the group exits so it is not wrapped in an ExceptionGroup.
                        error = e
                    tg.cancel_scope.cancel()
            if error is not None:
                raise error
            if cancel_event is not None and cancel_event.is_set():
                raise StorageCancelledError(key)
            if scope.cancelled_caught or anyio.current_time() >= scope.deadline:
                raise StorageCancelledError(key, "timed out")
            await to_thread.run_sync(target.commit)
        except StorageCancelledError:
            await self._abort(key, target)
            logger.info("Upload cancelled", extra={"key": key, "driver": self.driver})
            raise
        except self.transport_errors as e:
            await self._abort(key, target)
            logger.warning("Upload failed", extra={"key": key, "driver": self.driver, "error": str(e)})
            raise StorageUnavailableError(f"Storage upload failed: {key}", e) from e
        except BaseException:
            # Outer cancellation or a bug: still never leave a partial file.
            await self._abort(key, target)
            raise

        logger.info("Upload stored", extra={"key": key, "driver": self.driver, "bytes": written})
        return key

    @staticmethod
    async def _pump(stream: BinaryIO, target: UploadTarget) -> int:
        # A cancelled scope abandons a read or write stuck in its thread.
        written = 0
        while True:
            chunk = await to_thread.run_sync(stream.read, CHUNK_SIZE, abandon_on_cancel=True)
            if not chunk:
                return written
            await to_thread.run_sync(target.write, chunk, abandon_on_cancel=True)
            written += len(chunk)

    @staticmethod
    async def _cancel_when_set(event: anyio.Event, scope: anyio.CancelScope) -> None:
        await event.wait()
        scope.cancel()

    @staticmethod
    async def _abort(key: str, target: UploadTarget) -> None:
        with anyio.CancelScope(shield=True):
            try:
                await to_thread.run_sync(target.abort)
            except Exception:
                logger.exception("Failed to remove partial upload", extra={"key": key})

    # -- Other operations ----------------------------------------------------

    async def delete(self, key: str) -> None:
        key = normalize_key(key)
        await self._call(key, self._delete, key)
        logger.info("File deleted", extra={"key": key, "driver": self.driver})

    async def open(self, key: str) -> BinaryIO:
        key = normalize_key(key)
        return await self._call(key, self._open, key)

    async def stat(self, key: str) -> int:
        key = normalize_key(key)
        return await self._call(key, self._stat, key)

    def get_url(self, key: str) -> str:
        raise NotImplementedError

    async def _call(self, key: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await to_thread.run_sync(partial(func, *args))
        except FileNotFoundError:
            raise StorageNotFoundError(key) from None
        except self.transport_errors as e:
            raise StorageUnavailableError(f"Storage unavailable: {key}", e) from e

    # -- Backend hooks (blocking, run in the thread pool) ----------------------

    def _open_target(self, key: str) -> UploadTarget:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    def _open(self, key: str) -> BinaryIO:
        raise NotImplementedError

    def _stat(self, key: str) -> int:
        raise NotImplementedError
