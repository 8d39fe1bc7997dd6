"""Document model."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, BigIntId


class DocumentType(str, enum.Enum):
    MERMAID = "mermaid"
    MARKDOWN = "markdown"


class Document(Base):
    """A versioned diagram or markdown artifact inside a workspace.

    Content lives in ``document_versions``; the effective owner is the
    owner of the parent workspace.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index(
            "uq_documents_workspace_slug_active",
            "workspace_id",
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_documents_workspace_created", "workspace_id", "created_at"),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    workspace_id = Column(
        BigIntId, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False)
    type = Column(
        Enum(DocumentType, name="document_type", values_callable=lambda e: [m.value for m in e],
             native_enum=False, length=50),
        nullable=False,
        default=DocumentType.MERMAID,
    )
    slug = Column(String(255), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)

    workspace = relationship("Workspace", back_populates="documents")
    versions = relationship(
        "DocumentVersion", back_populates="document", cascade="all, delete-orphan"
    )
    shares = relationship(
        "SharedAccess", back_populates="document", cascade="all, delete-orphan"
    )
