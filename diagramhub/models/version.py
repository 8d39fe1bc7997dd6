"""Document version model (append-only history)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, BigIntId


class DocumentVersion(Base):
    """Immutable content snapshot; numbered 1..n per document."""

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_versions_number"),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    document_id = Column(
        BigIntId, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    version_number = Column(Integer, nullable=False)
    author_id = Column(BigIntId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    change_description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document", back_populates="versions")
