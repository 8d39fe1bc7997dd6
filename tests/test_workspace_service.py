"""Unit tests for WorkspaceService, bypassing the HTTP stack."""

import pytest

from diagramhub.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    WorkspaceNotFoundError,
)
from diagramhub.models import Document, SharedAccess, Workspace
from diagramhub.schemas import DocumentCreate, ShareCreate, WorkspaceCreate, WorkspaceUpdate
from diagramhub.services import DocumentService, SharingService, WorkspaceService


class TestCreateWorkspace:

    def test_create(self, db, alice):
        ws = WorkspaceService(db).create_workspace(alice.id, WorkspaceCreate(name="  Proj "))
        assert ws.id is not None
        assert ws.name == "Proj"
        assert ws.owner_id == alice.id
        assert ws.is_public is False

    def test_duplicate_name_same_owner_conflicts(self, db, alice):
        svc = WorkspaceService(db)
        svc.create_workspace(alice.id, WorkspaceCreate(name="Proj"))
        with pytest.raises(ConflictError):
            svc.create_workspace(alice.id, WorkspaceCreate(name="Proj"))

    def test_same_name_other_owner_allowed(self, db, alice, bob):
        svc = WorkspaceService(db)
        svc.create_workspace(alice.id, WorkspaceCreate(name="Proj"))
        assert svc.create_workspace(bob.id, WorkspaceCreate(name="Proj")).owner_id == bob.id

    def test_name_reusable_after_delete(self, db, alice):
        svc = WorkspaceService(db)
        first = svc.create_workspace(alice.id, WorkspaceCreate(name="Proj"))
        svc.delete_workspace(first.id, alice.id)
        second = svc.create_workspace(alice.id, WorkspaceCreate(name="Proj"))
        assert second.id != first.id

    def test_anonymous_cannot_create(self, db):
        with pytest.raises(AuthenticationError):
            WorkspaceService(db).create_workspace(None, WorkspaceCreate(name="Proj"))


class TestReadWorkspace:

    def test_owner_reads_private(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Private"))
        assert svc.get_workspace(ws.id, alice.id).id == ws.id

    def test_stranger_forbidden_on_private(self, db, alice, bob):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Private"))
        with pytest.raises(ForbiddenError):
            svc.get_workspace(ws.id, bob.id)

    def test_anyone_reads_public(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Open", is_public=True))
        assert svc.get_workspace(ws.id, None).id == ws.id

    def test_missing_is_not_found(self, db, alice):
        with pytest.raises(WorkspaceNotFoundError):
            WorkspaceService(db).get_workspace(12345, alice.id)


class TestListWorkspaces:

    def test_lists_only_own_newest_first(self, db, alice, bob):
        svc = WorkspaceService(db)
        for name in ("A", "B", "C"):
            svc.create_workspace(alice.id, WorkspaceCreate(name=name))
        svc.create_workspace(bob.id, WorkspaceCreate(name="Bob's"))

        result = svc.list_workspaces(alice.id)
        assert result.total == 3
        assert [w.name for w in result.data] == ["C", "B", "A"]

    def test_pagination_is_normalized(self, db, alice):
        result = WorkspaceService(db).list_workspaces(alice.id, page=0, limit=1000)
        assert result.page == 1
        assert result.limit == 100

    def test_second_page(self, db, alice):
        svc = WorkspaceService(db)
        for i in range(3):
            svc.create_workspace(alice.id, WorkspaceCreate(name=f"W{i}"))
        result = svc.list_workspaces(alice.id, page=2, limit=2)
        assert result.total == 3
        assert [w.name for w in result.data] == ["W0"]


class TestUpdateWorkspace:

    def test_rename(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Old"))
        assert svc.update_workspace(ws.id, alice.id, WorkspaceUpdate(name="New")).name == "New"

    def test_rename_to_own_name_is_fine(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Same"))
        assert svc.update_workspace(ws.id, alice.id, WorkspaceUpdate(name="Same")).name == "Same"

    def test_rename_collision_conflicts(self, db, alice):
        svc = WorkspaceService(db)
        svc.create_workspace(alice.id, WorkspaceCreate(name="Taken"))
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Mine"))
        with pytest.raises(ConflictError):
            svc.update_workspace(ws.id, alice.id, WorkspaceUpdate(name="Taken"))

    def test_non_owner_cannot_update_public_workspace(self, db, alice, bob):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Open", is_public=True))
        with pytest.raises(ForbiddenError):
            svc.update_workspace(ws.id, bob.id, WorkspaceUpdate(name="Hijacked"))

    def test_description_can_be_cleared(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="D", description="text"))
        updated = svc.update_workspace(ws.id, alice.id, WorkspaceUpdate(description=None))
        assert updated.description is None


class TestDeleteWorkspace:

    def test_cascades_to_documents_and_shares(self, db, alice, bob):
        ws_svc = WorkspaceService(db)
        ws = ws_svc.create_workspace(alice.id, WorkspaceCreate(name="Doomed"))
        doc = DocumentService(db).create_document(ws.id, alice.id, DocumentCreate(title="D", content="x"))
        SharingService(db).share_document(doc.id, alice.id, ShareCreate(user_id=bob.id))

        ws_svc.delete_workspace(ws.id, alice.id)

        db.expire_all()
        assert db.get(Workspace, ws.id).deleted_at is not None
        assert db.get(Document, doc.id).deleted_at is not None
        shares = db.query(SharedAccess).filter(SharedAccess.document_id == doc.id).all()
        assert shares and all(s.deleted_at is not None for s in shares)

    def test_deleted_workspace_is_not_found(self, db, alice):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Gone"))
        svc.delete_workspace(ws.id, alice.id)
        with pytest.raises(WorkspaceNotFoundError):
            svc.get_workspace(ws.id, alice.id)
        with pytest.raises(WorkspaceNotFoundError):
            svc.delete_workspace(ws.id, alice.id)

    def test_non_owner_cannot_delete(self, db, alice, bob):
        svc = WorkspaceService(db)
        ws = svc.create_workspace(alice.id, WorkspaceCreate(name="Keep", is_public=True))
        with pytest.raises(ForbiddenError):
            svc.delete_workspace(ws.id, bob.id)
