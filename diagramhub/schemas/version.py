"""Version schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class VersionCreate(BaseModel):
    """Version numbers are assigned by the server, never by the client."""
    content: str
    change_description: Optional[str] = Field(default=None, max_length=500)


class VersionResponse(BaseModel):
    id: int
    document_id: int
    version_number: int
    content: str
    author_id: Optional[int] = None
    change_description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VersionListResponse(BaseModel):
    data: List[VersionResponse]
    total: int
    page: int
    limit: int
