"""Pydantic schemas for API validation."""

from .pagination import PageParams
from .workspace import WorkspaceCreate, WorkspaceUpdate, WorkspaceResponse, WorkspaceListResponse
from .document import DocumentCreate, DocumentUpdate, DocumentResponse, DocumentListResponse
from .version import VersionCreate, VersionResponse, VersionListResponse
from .shared_access import ShareCreate, ShareResponse
from .file import FileUploadResponse

__all__ = [
    "PageParams",
    "WorkspaceCreate",
    "WorkspaceUpdate",
    "WorkspaceResponse",
    "WorkspaceListResponse",
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentResponse",
    "DocumentListResponse",
    "VersionCreate",
    "VersionResponse",
    "VersionListResponse",
    "ShareCreate",
    "ShareResponse",
    "FileUploadResponse",
]
