"""Business logic services."""

from .document_service import DocumentService
from .sharing_service import SharingService
from .workspace_service import WorkspaceService

__all__ = ["DocumentService", "SharingService", "WorkspaceService"]
