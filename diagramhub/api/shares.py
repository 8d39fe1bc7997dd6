"""Sharing API endpoints. Owner only."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas import ShareCreate, ShareResponse
from ..services import SharingService

router = APIRouter(prefix="/api/documents/{document_id}/shares", tags=["shares"])


@router.post("", response_model=ShareResponse, status_code=201)
def share_document(
    document_id: int,
    share: ShareCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Grant view/edit access to a user, or mint a link when ``user_id`` is omitted."""
    return SharingService(db).share_document(document_id, auth.user_id, share)


@router.get("", response_model=List[ShareResponse])
def list_shares(
    document_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return SharingService(db).list_shares(document_id, auth.user_id)


@router.delete("/{share_id}", status_code=204)
def revoke_share(
    document_id: int,
    share_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    SharingService(db).revoke_share(document_id, share_id, auth.user_id)
    return None
