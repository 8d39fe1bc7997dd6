"""Workspace API endpoints.

Endpoints are thin: WorkspaceService owns authorization, uniqueness and
the cascading delete.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas import WorkspaceCreate, WorkspaceListResponse, WorkspaceResponse, WorkspaceUpdate
from ..services import WorkspaceService

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])


@router.post("", response_model=WorkspaceResponse, status_code=201)
def create_workspace(
    workspace: WorkspaceCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a workspace owned by the caller. Names are unique per owner."""
    return WorkspaceService(db).create_workspace(auth.user_id, workspace)


@router.get("", response_model=WorkspaceListResponse)
def list_workspaces(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """List the caller's workspaces, newest first.

    Out-of-range paging is clamped (page >= 1, 1 <= limit <= 100), not rejected.
    """
    return WorkspaceService(db).list_workspaces(auth.user_id, page, limit)


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
def get_workspace(
    workspace_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return WorkspaceService(db).get_workspace(workspace_id, auth.user_id)


@router.put("/{workspace_id}", response_model=WorkspaceResponse)
def update_workspace(
    workspace_id: int,
    update: WorkspaceUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return WorkspaceService(db).update_workspace(workspace_id, auth.user_id, update)


@router.delete("/{workspace_id}", status_code=204)
def delete_workspace(
    workspace_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Soft-delete a workspace together with its documents and their shares."""
    WorkspaceService(db).delete_workspace(workspace_id, auth.user_id)
    return None
