"""Document repository for database operations.

All read methods exclude soft-deleted documents via ``_base_query()``.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func

from ..exceptions import DocumentNotFoundError
from ..models import Document
from .base import BaseRepository, clamp_window


class DocumentRepository(BaseRepository[Document]):
    """Document CRUD scoped by workspace."""

    model_class = Document
    not_found_error = DocumentNotFoundError
    parent_column = "workspace_id"

    def get_for_update(self, doc_id: int) -> Document:
        """Load an active document holding a row lock until commit.

        Serializes writers that derive state from the document's children
        (version numbering). SQLite ignores FOR UPDATE; its writes are
        already serialized by the database lock.
        """
        doc = self._base_query().filter(Document.id == doc_id).with_for_update().first()
        if doc is None:
            raise DocumentNotFoundError(doc_id)
        return doc

    def get_by_slug(self, workspace_id: int, slug: str) -> Optional[Document]:
        return self._base_query().filter(
            Document.workspace_id == workspace_id,
            Document.slug == slug,
        ).first()

    def slug_exists(self, workspace_id: int, slug: str, exclude_id: Optional[int] = None) -> bool:
        return self.exists(exclude_id=exclude_id, workspace_id=workspace_id, slug=slug)

    def list_public_by_workspace(self, workspace_id: int, limit: int, offset: int = 0) -> List[Document]:
        limit, offset = clamp_window(limit, offset)
        return (
            self._base_query()
            .filter(Document.workspace_id == workspace_id, Document.is_public.is_(True))
            .order_by(*self._order_by())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_public_by_workspace(self, workspace_id: int) -> int:
        return (
            self._base_query()
            .filter(Document.workspace_id == workspace_id, Document.is_public.is_(True))
            .with_entities(func.count(Document.id))
            .scalar()
        ) or 0

    def soft_delete_by_workspace(self, workspace_id: int, when: datetime) -> List[int]:
        """Tombstone every active document of a workspace. Returns their ids."""
        ids = [
            row[0]
            for row in self._base_query()
            .filter(Document.workspace_id == workspace_id)
            .with_entities(Document.id)
            .all()
        ]
        if ids:
            self._base_query().filter(Document.id.in_(ids)).update(
                {Document.deleted_at: when}, synchronize_session=False
            )
            self.db.flush()
        return ids
