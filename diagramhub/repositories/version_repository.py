"""Version repository. Versions are append-only: no update, no delete."""

from typing import Optional

from sqlalchemy import func

from ..exceptions import VersionNotFoundError
from ..models import DocumentVersion
from .base import BaseRepository


class VersionRepository(BaseRepository[DocumentVersion]):
    model_class = DocumentVersion
    not_found_error = VersionNotFoundError
    parent_column = "document_id"

    def _order_by(self) -> tuple:
        return (DocumentVersion.version_number.desc(),)

    def max_version_number(self, document_id: int) -> int:
        """Highest version number for a document, 0 when it has none."""
        return (
            self.db.query(func.max(DocumentVersion.version_number))
            .filter(DocumentVersion.document_id == document_id)
            .scalar()
        ) or 0

    def get_by_number(self, document_id: int, version_number: int) -> Optional[DocumentVersion]:
        return self._base_query().filter(
            DocumentVersion.document_id == document_id,
            DocumentVersion.version_number == version_number,
        ).first()

    def get_latest(self, document_id: int) -> Optional[DocumentVersion]:
        return (
            self._base_query()
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .first()
        )

    def update(self, entity, changes):
        raise TypeError("Document versions are immutable")
