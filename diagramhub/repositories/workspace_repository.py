"""Workspace repository for database operations."""

from typing import List, Optional

from ..exceptions import WorkspaceNotFoundError
from ..models import Workspace
from .base import BaseRepository


class WorkspaceRepository(BaseRepository[Workspace]):
    """Workspace CRUD; soft-deleted rows are invisible to every default read."""

    model_class = Workspace
    not_found_error = WorkspaceNotFoundError
    parent_column = "owner_id"

    def list_by_owner(self, owner_id: int, limit: int, offset: int = 0) -> List[Workspace]:
        return self.list_by_parent(owner_id, limit, offset)

    def count_by_owner(self, owner_id: int) -> int:
        return self.count_by_parent(owner_id)

    def name_exists(self, owner_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
        return self.exists(exclude_id=exclude_id, owner_id=owner_id, name=name)
