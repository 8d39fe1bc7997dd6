"""User model.

Identities are issued by the external authentication collaborator; this
table is the local mirror that ownership and sharing rows reference.
"""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from ..database import Base, BigIntId


class User(Base):
    """Local account record keyed by the identity provider's numeric id."""

    __tablename__ = "users"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=True)
    display_name = Column(String(255), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
