"""Permission checking: one pure predicate.

This is the ONE place where access rules are defined. Services load the
resource and the caller's candidate grants, then ask ``evaluate_access``;
nothing else in the system compares owner ids.

Rules, in precedence order:
    - Missing or soft-deleted resource      -> NOT_FOUND (checked first)
    - Caller owns the resource              -> ALLOWED for every action
    - READ on a public resource             -> ALLOWED
    - READ with any valid grant             -> ALLOWED   (documents only)
    - WRITE with a valid ``edit`` grant     -> ALLOWED   (documents only)
    - MANAGE (share, change grants)         -> owner only
    - anything else                         -> FORBIDDEN

A grant is valid when it targets this document, is not soft-deleted and
has not expired. Expired grants behave exactly like absent ones.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from ..models.shared_access import Permission

if TYPE_CHECKING:
    from ..models import Document, SharedAccess, Workspace


class Action(str, enum.Enum):
    READ = "read"
    WRITE = "write"    # update and delete
    MANAGE = "manage"  # sharing


class AccessDecision(str, enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resource:
    """Just enough of a workspace or document to decide access."""

    kind: str
    id: int
    owner_id: int
    is_public: bool
    is_active: bool = True


def workspace_resource(workspace: Optional[Workspace]) -> Optional[Resource]:
    if workspace is None:
        return None
    return Resource(
        kind="workspace",
        id=workspace.id,
        owner_id=workspace.owner_id,
        is_public=bool(workspace.is_public),
        is_active=workspace.deleted_at is None,
    )


def document_resource(document: Optional[Document], workspace: Optional[Workspace]) -> Optional[Resource]:
    """A document's effective owner is its workspace's owner.

    A live document under a tombstoned workspace counts as deleted.
    """
    if document is None or workspace is None:
        return None
    return Resource(
        kind="document",
        id=document.id,
        owner_id=workspace.owner_id,
        is_public=bool(document.is_public),
        is_active=document.deleted_at is None and workspace.deleted_at is None,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def grant_is_valid(grant: SharedAccess, document_id: int, now: datetime) -> bool:
    if grant.document_id != document_id or grant.deleted_at is not None:
        return False
    if grant.expires_at is not None and _as_utc(grant.expires_at) <= now:
        return False
    return True


def evaluate_access(
    resource: Optional[Resource],
    caller_id: Optional[int],
    action: Action,
    grants: Iterable[SharedAccess] = (),
    now: Optional[datetime] = None,
) -> AccessDecision:
    """Decide whether *caller_id* may perform *action* on *resource*.

    Args:
        resource: The target, or None when it does not exist.
        caller_id: Authenticated user id, or None for anonymous callers.
        action: What the caller wants to do.
        grants: Candidate grants for this caller (by user id or presented
            token). Invalid or expired ones are ignored here.
        now: Evaluation time (injectable for tests).

    Returns:
        ``AccessDecision.ALLOWED``, ``FORBIDDEN`` or ``NOT_FOUND``.
    """
    if resource is None or not resource.is_active:
        return AccessDecision.NOT_FOUND

    if caller_id is not None and caller_id == resource.owner_id:
        return AccessDecision.ALLOWED

    if action == Action.MANAGE:
        return AccessDecision.FORBIDDEN

    if action == Action.READ and resource.is_public:
        return AccessDecision.ALLOWED

    # Workspaces are owner-exclusive beyond public reads.
    if resource.kind != "document":
        return AccessDecision.FORBIDDEN

    now = now or datetime.now(timezone.utc)
    permissions = {
        Permission(grant.permission)
        for grant in grants
        if grant_is_valid(grant, resource.id, now)
    }

    if action == Action.READ and permissions:
        return AccessDecision.ALLOWED
    if action == Action.WRITE and Permission.EDIT in permissions:
        return AccessDecision.ALLOWED
    return AccessDecision.FORBIDDEN
