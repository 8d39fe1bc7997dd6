"""Shared access repository."""

from datetime import datetime
from typing import List, Optional, Sequence

from ..exceptions import SharedAccessNotFoundError
from ..models import SharedAccess
from .base import BaseRepository


class SharedAccessRepository(BaseRepository[SharedAccess]):
    """Grant lookups by (document, user) and by bearer token.

    Expiry is not filtered here: the permission predicate decides whether
    an unexpired grant applies, using the same clock for every rule.
    """

    model_class = SharedAccess
    not_found_error = SharedAccessNotFoundError
    parent_column = "document_id"

    def find_for_user(self, document_id: int, user_id: int) -> Optional[SharedAccess]:
        return self._base_query().filter(
            SharedAccess.document_id == document_id,
            SharedAccess.user_id == user_id,
        ).first()

    def find_by_token(self, access_token: str) -> Optional[SharedAccess]:
        return self._base_query().filter(SharedAccess.access_token == access_token).first()

    def token_exists(self, access_token: str) -> bool:
        # Tokens are unique across tombstones too (the column is UNIQUE).
        return self.db.query(
            self._all_rows_query().filter(SharedAccess.access_token == access_token).exists()
        ).scalar()

    def soft_delete_by_documents(self, document_ids: Sequence[int], when: datetime) -> int:
        if not document_ids:
            return 0
        count = self._base_query().filter(SharedAccess.document_id.in_(list(document_ids))).update(
            {SharedAccess.deleted_at: when}, synchronize_session=False
        )
        self.db.flush()
        return count

    def list_for_document(self, document_id: int) -> List[SharedAccess]:
        return (
            self._base_query()
            .filter(SharedAccess.document_id == document_id)
            .order_by(*self._order_by())
            .all()
        )
