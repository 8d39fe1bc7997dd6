"""Document service: documents and their append-only version history.

Version numbers are assigned under a row lock on the parent document:
``max(version_number) + 1`` is read and the new row inserted in the same
transaction, so two concurrent writers cannot both claim the same
number. The ``(document_id, version_number)`` unique constraint is the
backstop; losing that race surfaces as ConflictError, never as a
duplicate or a gap.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from ..database import transaction
from ..exceptions import ConflictError, VersionNotFoundError
from ..models import Document, DocumentVersion
from ..repositories import DocumentRepository, SharedAccessRepository, VersionRepository
from ..repositories.base import utcnow
from ..schemas import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
    PageParams,
    VersionCreate,
    VersionListResponse,
    VersionResponse,
)
from .access_service import AccessService
from .permission_service import Action

logger = logging.getLogger(__name__)

_VERSION_RACE = "Concurrent version creation, re-read the latest version and retry"


def slugify(title: str) -> str:
    """``"Order Flow (v2)"`` -> ``"order-flow-v2"``."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:255].rstrip("-") or "document"


def _duplicate_slug(slug: str) -> str:
    return f"Document with slug '{slug}' already exists in this workspace"


class DocumentService:
    def __init__(self, db: Session):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.version_repo = VersionRepository(db)
        self.share_repo = SharedAccessRepository(db)
        self.access = AccessService(db)

    # -- Documents -----------------------------------------------------------

    def create_document(self, workspace_id: int, caller_id: Optional[int], data: DocumentCreate) -> Document:
        """Create a document; an initial ``content`` becomes version 1."""
        workspace = self.access.authorize_workspace(workspace_id, caller_id, Action.WRITE)

        slug = data.slug or slugify(data.title)
        if self.doc_repo.slug_exists(workspace.id, slug):
            raise ConflictError(_duplicate_slug(slug), {"slug": slug})

        with transaction(self.db, _duplicate_slug(slug)):
            doc = self.doc_repo.create(
                workspace_id=workspace.id,
                title=data.title,
                type=data.type,
                slug=slug,
                is_public=data.is_public,
            )
            if data.content is not None:
                self.version_repo.create(
                    document_id=doc.id,
                    version_number=1,
                    content=data.content,
                    author_id=caller_id,
                    change_description=data.change_description or "Initial version",
                )

        logger.info("Document created", extra={"document_id": doc.id, "workspace_id": workspace.id})
        return doc

    def get_document(
        self, document_id: int, caller_id: Optional[int], share_token: Optional[str] = None
    ) -> Document:
        doc, _ = self.access.authorize_document(document_id, caller_id, Action.READ, share_token)
        return doc

    def list_documents(
        self,
        workspace_id: int,
        caller_id: Optional[int],
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> DocumentListResponse:
        """Owner sees every active document; anyone else only the public ones."""
        workspace = self.access.authorize_workspace(workspace_id, caller_id, Action.READ)
        params = PageParams.normalize(page, limit)

        if caller_id is not None and caller_id == workspace.owner_id:
            docs = self.doc_repo.list_by_parent(workspace.id, params.limit, params.offset)
            total = self.doc_repo.count_by_parent(workspace.id)
        else:
            docs = self.doc_repo.list_public_by_workspace(workspace.id, params.limit, params.offset)
            total = self.doc_repo.count_public_by_workspace(workspace.id)

        return DocumentListResponse(
            data=[DocumentResponse.model_validate(d) for d in docs],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def update_document(
        self,
        document_id: int,
        caller_id: Optional[int],
        data: DocumentUpdate,
        share_token: Optional[str] = None,
    ) -> Document:
        """Update metadata; a ``content`` field appends a new version atomically."""
        doc, _ = self.access.authorize_document(document_id, caller_id, Action.WRITE, share_token)

        changes = data.model_dump(exclude_unset=True, exclude={"content", "change_description"})
        new_slug = changes.get("slug")
        if new_slug and new_slug != doc.slug:
            if self.doc_repo.slug_exists(doc.workspace_id, new_slug, exclude_id=doc.id):
                raise ConflictError(_duplicate_slug(new_slug), {"slug": new_slug})

        conflict = _duplicate_slug(new_slug) if new_slug else _VERSION_RACE
        with transaction(self.db, conflict):
            doc = self.doc_repo.update(doc, changes)
            if data.content is not None:
                self._append_version(doc.id, data.content, caller_id, data.change_description)

        return doc

    def delete_document(
        self, document_id: int, caller_id: Optional[int], share_token: Optional[str] = None
    ) -> None:
        """Tombstone the document and revoke its grants. Versions stay, unreachable."""
        doc, _ = self.access.authorize_document(document_id, caller_id, Action.WRITE, share_token)

        when = utcnow()
        with transaction(self.db):
            revoked = self.share_repo.soft_delete_by_documents([doc.id], when)
            self.doc_repo.soft_delete(doc, when)

        logger.info("Document deleted", extra={"document_id": document_id, "shares_revoked": revoked})

    def to_response(self, doc: Document) -> DocumentResponse:
        """Document metadata with its current (highest-numbered) version."""
        latest = self.version_repo.get_latest(doc.id)
        return DocumentResponse.model_validate(doc).model_copy(
            update={"latest_version": VersionResponse.model_validate(latest) if latest else None}
        )

    # -- Versions ------------------------------------------------------------

    def create_version(
        self,
        document_id: int,
        caller_id: Optional[int],
        data: VersionCreate,
        share_token: Optional[str] = None,
    ) -> DocumentVersion:
        self.access.authorize_document(document_id, caller_id, Action.WRITE, share_token)

        with transaction(self.db, _VERSION_RACE):
            version = self._append_version(document_id, data.content, caller_id, data.change_description)

        logger.info(
            "Version created",
            extra={"document_id": document_id, "version_number": version.version_number},
        )
        return version

    def list_versions(
        self,
        document_id: int,
        caller_id: Optional[int],
        share_token: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> VersionListResponse:
        """Version history, newest first."""
        self.access.authorize_document(document_id, caller_id, Action.READ, share_token)
        params = PageParams.normalize(page, limit)
        versions = self.version_repo.list_by_parent(document_id, params.limit, params.offset)
        return VersionListResponse(
            data=[VersionResponse.model_validate(v) for v in versions],
            total=self.version_repo.count_by_parent(document_id),
            page=params.page,
            limit=params.limit,
        )

    def get_version(
        self,
        document_id: int,
        version_number: int,
        caller_id: Optional[int],
        share_token: Optional[str] = None,
    ) -> DocumentVersion:
        self.access.authorize_document(document_id, caller_id, Action.READ, share_token)
        version = self.version_repo.get_by_number(document_id, version_number)
        if version is None:
            raise VersionNotFoundError(f"{document_id}/v{version_number}")
        return version

    def get_latest_version(
        self, document_id: int, caller_id: Optional[int], share_token: Optional[str] = None
    ) -> DocumentVersion:
        self.access.authorize_document(document_id, caller_id, Action.READ, share_token)
        version = self.version_repo.get_latest(document_id)
        if version is None:
            raise VersionNotFoundError(f"{document_id}/latest")
        return version

    def _append_version(
        self,
        document_id: int,
        content: str,
        author_id: Optional[int],
        change_description: Optional[str],
    ) -> DocumentVersion:
        """Must run inside a transaction; the lock is held until it commits."""
        doc = self.doc_repo.get_for_update(document_id)
        number = self.version_repo.max_version_number(document_id) + 1
        version = self.version_repo.create(
            document_id=document_id,
            version_number=number,
            content=content,
            author_id=author_id,
            change_description=change_description,
        )
        doc.updated_at = utcnow()
        self.db.flush()
        return version
