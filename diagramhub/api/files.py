"""Workspace file endpoints backed by the configured storage driver.

Files are stored under ``workspaces/{workspace_id}/{filename}``. Blobs
are not transactional with the database, so a failed upload leaves
nothing behind and deleting an already-missing file succeeds.
"""

import logging
import mimetypes
from typing import BinaryIO, Callable, Iterator

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from ..core.auth import AuthContext, optional_auth, require_auth
from ..core.config import settings
from ..database import get_db
from ..exceptions import StorageNotFoundError, ValidationError
from ..models import Workspace
from ..schemas import FileUploadResponse
from ..services.access_service import AccessService
from ..services.permission_service import Action
from ..storage import CHUNK_SIZE, FileStorage, create_storage, normalize_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workspaces/{workspace_id}/files", tags=["files"])


def get_storage(request: Request) -> FileStorage:
    """The storage backend chosen at startup."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = request.app.state.storage = create_storage(settings.storage)
    return storage


def _workspace_access(action: Action, auth_dependency: Callable) -> Callable:
    def dependency(
        workspace_id: int,
        db: Session = Depends(get_db),
        auth: AuthContext = Depends(auth_dependency),
    ) -> Workspace:
        return AccessService(db).authorize_workspace(workspace_id, auth.user_id, action)

    return dependency


_readable_workspace = _workspace_access(Action.READ, optional_auth)
_writable_workspace = _workspace_access(Action.WRITE, require_auth)


def _file_key(workspace_id: int, filename: str) -> str:
    name = normalize_key(filename)
    if "/" in name:
        raise ValidationError("Filename cannot contain path separators", field="filename")
    return f"workspaces/{workspace_id}/{name}"


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    try:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


@router.post("", response_model=FileUploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    workspace: Workspace = Depends(_writable_workspace),
    storage: FileStorage = Depends(get_storage),
):
    """Upload a file into the workspace, replacing any file of the same name."""
    if not file.filename:
        raise ValidationError("Uploaded file needs a filename", field="file")
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise ValidationError(
            f"File exceeds the {settings.max_upload_bytes} byte upload limit", field="file"
        )

    key = await storage.upload(
        _file_key(workspace.id, file.filename),
        file.file,
        timeout=settings.upload_timeout,
    )
    size = await storage.stat(key)
    return FileUploadResponse(key=key, size=size, url=storage.get_url(key))


@router.get("/{filename}")
async def download_file(
    filename: str,
    workspace: Workspace = Depends(_readable_workspace),
    storage: FileStorage = Depends(get_storage),
):
    key = _file_key(workspace.id, filename)
    size = await storage.stat(key)
    handle = await storage.open(key)
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    # The background close also covers a client that disconnects before the body is read.
    return StreamingResponse(
        _iter_file(handle),
        media_type=media_type,
        headers={"Content-Length": str(size)},
        background=BackgroundTask(handle.close),
    )


@router.delete("/{filename}", status_code=204)
async def delete_file(
    filename: str,
    workspace: Workspace = Depends(_writable_workspace),
    storage: FileStorage = Depends(get_storage),
):
    """Delete a file. Deleting a file that is already gone is not an error."""
    key = _file_key(workspace.id, filename)
    try:
        await storage.delete(key)
    except StorageNotFoundError:
        logger.info("File already absent", extra={"key": key})
    return None
