"""API routes."""

from .workspaces import router as workspaces_router
from .documents import router as documents_router, workspace_documents_router
from .versions import router as versions_router
from .shares import router as shares_router
from .files import router as files_router

__all__ = [
    "workspaces_router",
    "documents_router",
    "workspace_documents_router",
    "versions_router",
    "shares_router",
    "files_router",
]
