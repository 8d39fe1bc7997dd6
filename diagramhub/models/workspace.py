"""Workspace model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, BigIntId


class Workspace(Base):
    """Top-level container owned by a single user.

    ``(owner_id, name)`` is unique among rows where ``deleted_at`` is NULL,
    so a tombstoned workspace never blocks reuse of its name.
    """

    __tablename__ = "workspaces"
    __table_args__ = (
        Index(
            "uq_workspaces_owner_name_active",
            "owner_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_workspaces_owner_created", "owner_id", "created_at"),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    owner_id = Column(BigIntId, ForeignKey("users.id"), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)

    documents = relationship("Document", back_populates="workspace")
