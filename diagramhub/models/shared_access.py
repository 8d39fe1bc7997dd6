"""Shared access model.

A row is either a user-scoped grant (``user_id`` set) or an anonymous
bearer grant (``user_id`` NULL, ``access_token`` is the credential).
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, BigIntId


class Permission(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"


class SharedAccess(Base):
    """View/edit grant on a single document."""

    __tablename__ = "shared_access"
    __table_args__ = (
        Index(
            "uq_shared_access_document_user_active",
            "document_id",
            "user_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND user_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND user_id IS NOT NULL"),
        ),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    document_id = Column(
        BigIntId, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(BigIntId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    access_token = Column(String(255), nullable=False, unique=True)
    permission = Column(
        Enum(Permission, name="share_permission", values_callable=lambda e: [m.value for m in e],
             native_enum=False, length=50),
        nullable=False,
        default=Permission.VIEW,
    )
    expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)

    document = relationship("Document", back_populates="shares")
