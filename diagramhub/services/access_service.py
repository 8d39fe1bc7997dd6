"""Resource loading + permission enforcement.

Loads a workspace or document together with the caller's candidate
grants, asks ``permission_service.evaluate_access`` and turns the
decision into the matching exception. Existence is checked before
permission, so a missing resource is a 404 even for strangers.
"""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..exceptions import DocumentNotFoundError, ForbiddenError, WorkspaceNotFoundError
from ..models import Document, SharedAccess, Workspace
from ..repositories import DocumentRepository, SharedAccessRepository, WorkspaceRepository
from .permission_service import (
    AccessDecision,
    Action,
    document_resource,
    evaluate_access,
    workspace_resource,
)

_FORBIDDEN_MESSAGES = {
    Action.READ: "You don't have permission to access this {kind}",
    Action.WRITE: "You don't have permission to modify this {kind}",
    Action.MANAGE: "Only the owner can manage sharing for this {kind}",
}


class AccessService:
    def __init__(self, db: Session):
        self.db = db
        self.workspace_repo = WorkspaceRepository(db)
        self.doc_repo = DocumentRepository(db)
        self.share_repo = SharedAccessRepository(db)

    def authorize_workspace(self, workspace_id: int, caller_id: Optional[int], action: Action) -> Workspace:
        workspace = self.workspace_repo.get_by_id_optional(workspace_id)
        decision = evaluate_access(workspace_resource(workspace), caller_id, action)
        self._enforce(decision, action, "workspace", WorkspaceNotFoundError(workspace_id))
        return workspace

    def authorize_document(
        self,
        document_id: int,
        caller_id: Optional[int],
        action: Action,
        share_token: Optional[str] = None,
    ) -> Tuple[Document, Workspace]:
        document = self.doc_repo.get_by_id_optional(document_id)
        workspace = (
            self.workspace_repo.get_by_id_optional(document.workspace_id) if document else None
        )
        resource = document_resource(document, workspace)

        grants: List[SharedAccess] = []
        if resource is not None and caller_id != resource.owner_id and action != Action.MANAGE:
            grants = self.candidate_grants(document_id, caller_id, share_token)

        decision = evaluate_access(resource, caller_id, action, grants)
        self._enforce(decision, action, "document", DocumentNotFoundError(document_id))
        return document, workspace

    def candidate_grants(
        self, document_id: int, caller_id: Optional[int], share_token: Optional[str]
    ) -> List[SharedAccess]:
        """Grants the caller could be relying on: their own and the presented token's."""
        grants: List[SharedAccess] = []
        if caller_id is not None:
            own = self.share_repo.find_for_user(document_id, caller_id)
            if own is not None:
                grants.append(own)
        if share_token:
            by_token = self.share_repo.find_by_token(share_token)
            # A token issued to a named user only works for that user.
            if (
                by_token is not None
                and by_token.document_id == document_id
                and (by_token.user_id is None or by_token.user_id == caller_id)
            ):
                grants.append(by_token)
        return grants

    @staticmethod
    def _enforce(decision: AccessDecision, action: Action, kind: str, not_found: Exception) -> None:
        if decision == AccessDecision.NOT_FOUND:
            raise not_found
        if decision == AccessDecision.FORBIDDEN:
            raise ForbiddenError(_FORBIDDEN_MESSAGES[action].format(kind=kind))
