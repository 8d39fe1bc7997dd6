"""Workspace file schemas."""

from pydantic import BaseModel


class FileUploadResponse(BaseModel):
    key: str
    size: int
    url: str
