"""Database models."""

from .user import User
from .workspace import Workspace
from .document import Document, DocumentType
from .version import DocumentVersion
from .shared_access import SharedAccess, Permission

__all__ = [
    "User", "Workspace", "Document", "DocumentType",
    "DocumentVersion", "SharedAccess", "Permission",
]
