"""Document schemas."""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.document import DocumentType
from .version import VersionResponse

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _check_slug(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not SLUG_PATTERN.match(v):
        raise ValueError("Slug may only contain lowercase letters, digits and single hyphens")
    return v


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: DocumentType = DocumentType.MERMAID
    slug: Optional[str] = Field(default=None, max_length=255)
    is_public: bool = False
    content: Optional[str] = None
    change_description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be blank")
        return v


class DocumentUpdate(BaseModel):
    """Partial update. Supplying ``content`` appends a new version."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    type: Optional[DocumentType] = None
    is_public: Optional[bool] = None
    content: Optional[str] = None
    change_description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        return _check_slug(v)


class DocumentResponse(BaseModel):
    id: int
    workspace_id: int
    title: str
    type: DocumentType
    slug: str
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    latest_version: Optional[VersionResponse] = None

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    data: List[DocumentResponse]
    total: int
    page: int
    limit: int
