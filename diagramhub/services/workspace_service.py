"""Workspace service: lifecycle of workspaces.

Create, read, list, rename/update and cascade soft-delete. Authorization
goes through AccessService; uniqueness is pre-checked for a readable
error and enforced by the partial unique index, whose violation is
reported as the same ConflictError.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..database import transaction
from ..exceptions import AuthenticationError, ConflictError
from ..models import Workspace
from ..repositories import DocumentRepository, SharedAccessRepository, WorkspaceRepository
from ..repositories.base import utcnow
from ..schemas import PageParams, WorkspaceCreate, WorkspaceListResponse, WorkspaceResponse, WorkspaceUpdate
from .access_service import AccessService
from .permission_service import Action

logger = logging.getLogger(__name__)


def _duplicate_name(name: str) -> str:
    return f"Workspace with name '{name}' already exists"


class WorkspaceService:
    def __init__(self, db: Session):
        self.db = db
        self.workspace_repo = WorkspaceRepository(db)
        self.doc_repo = DocumentRepository(db)
        self.share_repo = SharedAccessRepository(db)
        self.access = AccessService(db)

    def create_workspace(self, caller_id: Optional[int], data: WorkspaceCreate) -> Workspace:
        if caller_id is None:
            raise AuthenticationError("User not authenticated")

        if self.workspace_repo.name_exists(caller_id, data.name):
            raise ConflictError(_duplicate_name(data.name), {"name": data.name})

        with transaction(self.db, _duplicate_name(data.name)):
            workspace = self.workspace_repo.create(
                owner_id=caller_id,
                name=data.name,
                description=data.description,
                is_public=data.is_public,
            )

        logger.info("Workspace created", extra={"workspace_id": workspace.id, "owner_id": caller_id})
        return workspace

    def get_workspace(self, workspace_id: int, caller_id: Optional[int]) -> Workspace:
        return self.access.authorize_workspace(workspace_id, caller_id, Action.READ)

    def list_workspaces(
        self, caller_id: Optional[int], page: Optional[int] = None, limit: Optional[int] = None
    ) -> WorkspaceListResponse:
        """Caller's own active workspaces, newest first."""
        if caller_id is None:
            raise AuthenticationError("User not authenticated")

        params = PageParams.normalize(page, limit)
        workspaces = self.workspace_repo.list_by_owner(caller_id, params.limit, params.offset)
        total = self.workspace_repo.count_by_owner(caller_id)
        return WorkspaceListResponse(
            data=[WorkspaceResponse.model_validate(ws) for ws in workspaces],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def update_workspace(self, workspace_id: int, caller_id: Optional[int], data: WorkspaceUpdate) -> Workspace:
        workspace = self.access.authorize_workspace(workspace_id, caller_id, Action.WRITE)

        changes = data.model_dump(exclude_unset=True)
        new_name = changes.get("name")
        if new_name and new_name != workspace.name:
            if self.workspace_repo.name_exists(workspace.owner_id, new_name, exclude_id=workspace.id):
                raise ConflictError(_duplicate_name(new_name), {"name": new_name})

        with transaction(self.db, _duplicate_name(new_name or workspace.name)):
            workspace = self.workspace_repo.update(workspace, changes)
            # Explicit description clearing: ``{"description": null}``.
            if "description" in changes and changes["description"] is None:
                workspace.description = None
                self.db.flush()

        return workspace

    def delete_workspace(self, workspace_id: int, caller_id: Optional[int]) -> None:
        """Tombstone the workspace, its documents and their grants in one transaction."""
        workspace = self.access.authorize_workspace(workspace_id, caller_id, Action.WRITE)

        when = utcnow()
        with transaction(self.db):
            document_ids = self.doc_repo.soft_delete_by_workspace(workspace.id, when)
            revoked = self.share_repo.soft_delete_by_documents(document_ids, when)
            self.workspace_repo.soft_delete(workspace, when)

        logger.info(
            "Workspace deleted",
            extra={
                "workspace_id": workspace_id,
                "documents": len(document_ids),
                "shares_revoked": revoked,
            },
        )
