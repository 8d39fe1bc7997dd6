"""Data access repositories."""

from .base import BaseRepository, MAX_PAGE_SIZE
from .user_repository import UserRepository
from .workspace_repository import WorkspaceRepository
from .document_repository import DocumentRepository
from .version_repository import VersionRepository
from .shared_access_repository import SharedAccessRepository

__all__ = [
    "BaseRepository",
    "MAX_PAGE_SIZE",
    "UserRepository",
    "WorkspaceRepository",
    "DocumentRepository",
    "VersionRepository",
    "SharedAccessRepository",
]
