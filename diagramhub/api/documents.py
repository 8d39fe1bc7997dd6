"""Document API endpoints.

Reads accept anonymous callers (public documents, share links); writes
need a user or a share token, and the permission check decides the rest.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth, require_identity
from ..database import get_db
from ..schemas import DocumentCreate, DocumentListResponse, DocumentResponse, DocumentUpdate
from ..services import DocumentService

router = APIRouter(prefix="/api/documents", tags=["documents"])
workspace_documents_router = APIRouter(prefix="/api/workspaces/{workspace_id}/documents", tags=["documents"])


@workspace_documents_router.post("", response_model=DocumentResponse, status_code=201)
def create_document(
    workspace_id: int,
    document: DocumentCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a document; initial ``content`` becomes version 1."""
    service = DocumentService(db)
    doc = service.create_document(workspace_id, auth.user_id, document)
    return service.to_response(doc)


@workspace_documents_router.get("", response_model=DocumentListResponse)
def list_documents(
    workspace_id: int,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Owners see every document; other readers only public ones."""
    return DocumentService(db).list_documents(workspace_id, auth.user_id, page, limit)


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    service = DocumentService(db)
    doc = service.get_document(document_id, auth.user_id, auth.share_token)
    return service.to_response(doc)


@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: int,
    update: DocumentUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_identity),
):
    """Update metadata; supplying ``content`` appends a new version."""
    service = DocumentService(db)
    doc = service.update_document(document_id, auth.user_id, update, auth.share_token)
    return service.to_response(doc)


@router.delete("/{document_id}", status_code=204)
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_identity),
):
    """Soft-delete a document and revoke its shares."""
    DocumentService(db).delete_document(document_id, auth.user_id, auth.share_token)
    return None
