"""Tests for the pure access predicate: no database, no HTTP."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from diagramhub.services.permission_service import (
    AccessDecision,
    Action,
    Resource,
    document_resource,
    evaluate_access,
    grant_is_valid,
    workspace_resource,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
OWNER = 1
OTHER = 2


def _doc(is_public=False, is_active=True) -> Resource:
    return Resource(kind="document", id=10, owner_id=OWNER, is_public=is_public, is_active=is_active)


def _workspace(is_public=False) -> Resource:
    return Resource(kind="workspace", id=5, owner_id=OWNER, is_public=is_public)


def _grant(permission="view", document_id=10, expires_at=None, deleted_at=None):
    return SimpleNamespace(
        document_id=document_id,
        permission=permission,
        expires_at=expires_at,
        deleted_at=deleted_at,
    )


class TestExistence:

    def test_missing_resource_is_not_found(self):
        assert evaluate_access(None, OWNER, Action.READ) == AccessDecision.NOT_FOUND

    def test_deleted_resource_is_not_found_even_for_owner(self):
        assert evaluate_access(_doc(is_active=False), OWNER, Action.READ) == AccessDecision.NOT_FOUND


class TestOwnership:

    def test_owner_can_do_everything(self):
        for action in Action:
            assert evaluate_access(_doc(), OWNER, action) == AccessDecision.ALLOWED

    def test_stranger_cannot_read_private_document(self):
        assert evaluate_access(_doc(), OTHER, Action.READ) == AccessDecision.FORBIDDEN

    def test_anonymous_cannot_read_private_document(self):
        assert evaluate_access(_doc(), None, Action.READ) == AccessDecision.FORBIDDEN


class TestPublicResources:

    def test_anyone_reads_public_document(self):
        assert evaluate_access(_doc(is_public=True), None, Action.READ) == AccessDecision.ALLOWED

    def test_public_does_not_grant_write(self):
        assert evaluate_access(_doc(is_public=True), OTHER, Action.WRITE) == AccessDecision.FORBIDDEN

    def test_public_workspace_readable_not_writable(self):
        assert evaluate_access(_workspace(is_public=True), OTHER, Action.READ) == AccessDecision.ALLOWED
        assert evaluate_access(_workspace(is_public=True), OTHER, Action.WRITE) == AccessDecision.FORBIDDEN


class TestGrants:

    def test_view_grant_allows_read_only(self):
        grants = [_grant("view")]
        assert evaluate_access(_doc(), OTHER, Action.READ, grants, NOW) == AccessDecision.ALLOWED
        assert evaluate_access(_doc(), OTHER, Action.WRITE, grants, NOW) == AccessDecision.FORBIDDEN

    def test_edit_grant_allows_read_and_write(self):
        grants = [_grant("edit")]
        assert evaluate_access(_doc(), OTHER, Action.READ, grants, NOW) == AccessDecision.ALLOWED
        assert evaluate_access(_doc(), OTHER, Action.WRITE, grants, NOW) == AccessDecision.ALLOWED

    def test_no_grant_manages(self):
        grants = [_grant("edit")]
        assert evaluate_access(_doc(), OTHER, Action.MANAGE, grants, NOW) == AccessDecision.FORBIDDEN

    def test_expired_grant_behaves_as_absent(self):
        grants = [_grant("edit", expires_at=NOW - timedelta(seconds=1))]
        assert evaluate_access(_doc(), OTHER, Action.READ, grants, NOW) == AccessDecision.FORBIDDEN

    def test_grant_for_another_document_is_ignored(self):
        grants = [_grant("edit", document_id=99)]
        assert evaluate_access(_doc(), OTHER, Action.READ, grants, NOW) == AccessDecision.FORBIDDEN

    def test_revoked_grant_is_ignored(self):
        grants = [_grant("view", deleted_at=NOW)]
        assert evaluate_access(_doc(), OTHER, Action.READ, grants, NOW) == AccessDecision.FORBIDDEN

    def test_anonymous_token_grant_allows_read(self):
        assert evaluate_access(_doc(), None, Action.READ, [_grant("view")], NOW) == AccessDecision.ALLOWED

    def test_document_grants_do_not_open_workspaces(self):
        assert evaluate_access(_workspace(), OTHER, Action.READ, [_grant("edit", document_id=5)], NOW) \
            == AccessDecision.FORBIDDEN

    def test_naive_expiry_is_treated_as_utc(self):
        grant = _grant("view", expires_at=(NOW + timedelta(minutes=5)).replace(tzinfo=None))
        assert grant_is_valid(grant, 10, NOW) is True


class TestResourceAdapters:

    def test_document_owner_is_workspace_owner(self):
        ws = SimpleNamespace(id=5, owner_id=7, is_public=False, deleted_at=None)
        doc = SimpleNamespace(id=10, is_public=True, deleted_at=None)
        resource = document_resource(doc, ws)
        assert resource.owner_id == 7
        assert resource.is_public is True

    def test_document_under_deleted_workspace_is_inactive(self):
        ws = SimpleNamespace(id=5, owner_id=7, is_public=False, deleted_at=NOW)
        doc = SimpleNamespace(id=10, is_public=False, deleted_at=None)
        assert document_resource(doc, ws).is_active is False

    def test_missing_workspace_gives_no_resource(self):
        assert workspace_resource(None) is None
        assert document_resource(SimpleNamespace(id=1), None) is None
