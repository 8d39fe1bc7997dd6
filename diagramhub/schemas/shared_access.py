"""Shared access schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..models.shared_access import Permission


class ShareCreate(BaseModel):
    """Omit ``user_id`` to mint an anonymous bearer link."""
    user_id: Optional[int] = None
    permission: Permission = Permission.VIEW
    expires_at: Optional[datetime] = None


class ShareResponse(BaseModel):
    id: int
    document_id: int
    user_id: Optional[int] = None
    access_token: str
    permission: Permission
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
