"""Base repository with the shared capability set.

Subclasses specify ``model_class``, ``not_found_error`` and, for child
entities, ``parent_column``.  Every default read goes through
``_base_query()``, which excludes soft-deleted rows for models that carry
a ``deleted_at`` column, so a forgotten filter cannot leak tombstones.

Repositories never authorize; that belongs to the service layer.
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import NotFoundError, ValidationError

ModelT = TypeVar("ModelT", bound=Base)

# Hard ceiling for any page size, whatever the caller asked for.
MAX_PAGE_SIZE = 100


def clamp_window(limit: int, offset: int) -> Tuple[int, int]:
    """Bound a limit/offset pair. Negative offsets are a caller bug."""
    if offset < 0:
        raise ValidationError("offset must be non-negative", field="offset")
    return max(1, min(limit, MAX_PAGE_SIZE)), offset


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model
        not_found_error: Exception class raised by get_by_id
        parent_column:   Foreign key used by list_by_parent / count_by_parent
    """

    model_class: Type[ModelT]
    not_found_error: Type[NotFoundError]
    parent_column: Optional[str] = None

    def __init__(self, db: Session):
        self.db = db

    # -- Query building ------------------------------------------------------

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model_class, "deleted_at")

    def _all_rows_query(self) -> Query:
        return self.db.query(self.model_class)

    def _base_query(self) -> Query:
        """Active rows only (the default for every read)."""
        query = self._all_rows_query()
        if self.soft_deletes:
            query = query.filter(self.model_class.deleted_at.is_(None))
        return query

    def _order_by(self) -> tuple:
        """Newest first; id breaks ties between rows created in the same tick."""
        return (self.model_class.created_at.desc(), self.model_class.id.desc())

    def _parent_col(self):
        if self.parent_column is None:
            raise TypeError(f"{type(self).__name__} has no parent_column")
        return getattr(self.model_class, self.parent_column)

    # -- Reads ---------------------------------------------------------------

    def get_by_id(self, entity_id: int) -> ModelT:
        """Active entity by primary key. Raises not_found_error if absent or deleted."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: int) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_by_id_including_deleted(self, entity_id: int) -> Optional[ModelT]:
        """Bypass the active-only filter (audits and tests)."""
        return self._all_rows_query().filter(self.model_class.id == entity_id).first()

    def list_by_parent(self, parent_id: int, limit: int, offset: int = 0) -> List[ModelT]:
        limit, offset = clamp_window(limit, offset)
        return (
            self._base_query()
            .filter(self._parent_col() == parent_id)
            .order_by(*self._order_by())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_by_parent(self, parent_id: int) -> int:
        return (
            self._base_query()
            .filter(self._parent_col() == parent_id)
            .with_entities(func.count(self.model_class.id))
            .scalar()
        ) or 0

    def count_active(self) -> int:
        return self._base_query().with_entities(func.count(self.model_class.id)).scalar() or 0

    def exists(self, exclude_id: Optional[int] = None, **key: Any) -> bool:
        """Whether an active row matches ``key``, ignoring ``exclude_id``.

        Lets a rename check for collisions without tripping over itself.
        """
        query = self._base_query().filter_by(**key)
        if exclude_id is not None:
            query = query.filter(self.model_class.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    # -- Writes --------------------------------------------------------------

    def create(self, **fields: Any) -> ModelT:
        entity = self.model_class(**fields)
        self.db.add(entity)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def update(self, entity: ModelT, changes: Mapping[str, Any]) -> ModelT:
        """Partial update: ``None`` values leave the column untouched."""
        for field, value in changes.items():
            if value is not None:
                setattr(entity, field, value)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def soft_delete(self, entity: ModelT, when: Optional[datetime] = None) -> ModelT:
        if not self.soft_deletes:
            raise TypeError(f"{self.model_class.__name__} does not support soft delete")
        entity.deleted_at = when or utcnow()
        self.db.flush()
        return entity
