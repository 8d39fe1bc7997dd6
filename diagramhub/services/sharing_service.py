"""Sharing service: view/edit grants on single documents.

Only the effective owner (the workspace owner) can grant, list or revoke.
A grant either names a user or, with no user, acts as an anonymous
bearer link whose ``access_token`` is the credential.
"""

import logging
import secrets
from datetime import timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from ..database import transaction
from ..exceptions import SharedAccessNotFoundError, UnavailableError, UserNotFoundError, ValidationError
from ..models import SharedAccess
from ..repositories import SharedAccessRepository, UserRepository
from ..repositories.base import utcnow
from ..schemas import ShareCreate
from .access_service import AccessService
from .permission_service import Action

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
_MAX_TOKEN_ATTEMPTS = 5


class SharingService:
    def __init__(self, db: Session):
        self.db = db
        self.share_repo = SharedAccessRepository(db)
        self.user_repo = UserRepository(db)
        self.access = AccessService(db)

    def share_document(self, document_id: int, caller_id: Optional[int], data: ShareCreate) -> SharedAccess:
        """Grant access. Re-sharing with the same user updates the existing grant."""
        doc, workspace = self.access.authorize_document(document_id, caller_id, Action.MANAGE)

        expires_at = None
        if data.expires_at is not None:
            if data.expires_at.tzinfo is None:
                raise ValidationError("expires_at must include a timezone offset", field="expires_at")
            # Stored as UTC; SQLite drops offsets.
            expires_at = data.expires_at.astimezone(timezone.utc)
            if expires_at <= utcnow():
                raise ValidationError("expires_at must be in the future", field="expires_at")

        if data.user_id is not None:
            if data.user_id == workspace.owner_id:
                raise ValidationError("The owner already has full access", field="user_id")
            if self.user_repo.get_active(data.user_id) is None:
                raise UserNotFoundError(data.user_id)

            existing = self.share_repo.find_for_user(doc.id, data.user_id)
            if existing is not None:
                with transaction(self.db, "Document already shared with this user"):
                    existing.permission = data.permission
                    existing.expires_at = expires_at
                    self.db.flush()
                logger.info(
                    "Share updated",
                    extra={"document_id": doc.id, "share_id": existing.id, "permission": data.permission.value},
                )
                return existing

        with transaction(self.db, "Document already shared with this user"):
            share = self.share_repo.create(
                document_id=doc.id,
                user_id=data.user_id,
                access_token=self._new_token(),
                permission=data.permission,
                expires_at=expires_at,
            )

        logger.info(
            "Document shared",
            extra={
                "document_id": doc.id,
                "share_id": share.id,
                "grantee": data.user_id,
                "permission": data.permission.value,
            },
        )
        return share

    def list_shares(self, document_id: int, caller_id: Optional[int]) -> List[SharedAccess]:
        self.access.authorize_document(document_id, caller_id, Action.MANAGE)
        return self.share_repo.list_for_document(document_id)

    def revoke_share(self, document_id: int, share_id: int, caller_id: Optional[int]) -> None:
        self.access.authorize_document(document_id, caller_id, Action.MANAGE)

        share = self.share_repo.get_by_id_optional(share_id)
        if share is None or share.document_id != document_id:
            raise SharedAccessNotFoundError(share_id)

        with transaction(self.db):
            self.share_repo.soft_delete(share)

        logger.info("Share revoked", extra={"document_id": document_id, "share_id": share_id})

    def _new_token(self) -> str:
        for _ in range(_MAX_TOKEN_ATTEMPTS):
            token = secrets.token_urlsafe(TOKEN_BYTES)
            if not self.share_repo.token_exists(token):
                return token
        raise UnavailableError("Could not allocate a unique share token")
