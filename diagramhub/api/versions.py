"""Version API endpoints. History is append-only."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_identity
from ..database import get_db
from ..schemas import VersionCreate, VersionListResponse, VersionResponse
from ..services import DocumentService

router = APIRouter(prefix="/api/documents/{document_id}/versions", tags=["versions"])


@router.get("", response_model=VersionListResponse)
def list_versions(
    document_id: int,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """List versions for a document, newest first."""
    return DocumentService(db).list_versions(document_id, auth.user_id, auth.share_token, page, limit)


@router.post("", response_model=VersionResponse, status_code=201)
def create_version(
    document_id: int,
    version: VersionCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_identity),
):
    """Append a version. The server assigns the next number."""
    return DocumentService(db).create_version(document_id, auth.user_id, version, auth.share_token)


@router.get("/latest", response_model=VersionResponse)
def get_latest_version(
    document_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return DocumentService(db).get_latest_version(document_id, auth.user_id, auth.share_token)


@router.get("/{version_number}", response_model=VersionResponse)
def get_version(
    document_id: int,
    version_number: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return DocumentService(db).get_version(document_id, version_number, auth.user_id, auth.share_token)
