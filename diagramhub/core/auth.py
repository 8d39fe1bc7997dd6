"""FastAPI dependencies resolving the caller.

Public interface:
    ``require_auth``: returns AuthContext with a user id or raises 401.
    ``optional_auth``: always returns AuthContext, never raises. Anonymous
        callers get ``user_id=None`` and may still present a share token.
    ``require_identity``: a user or a share token, else 401.

Identity comes from one of two sources, chosen by ``settings.auth_mode``:
    ``jwt``: ``Authorization: Bearer <token>`` signed with JWT_SECRET_KEY.
    ``header``: ``X-User-ID`` injected by an authenticating gateway.

Either way the user must exist and be active.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved caller identity available to every endpoint.

    ``share_token`` is the bearer grant presented with the request, if any;
    services hand it to the permission check alongside ``user_id``.
    """

    user_id: Optional[int] = None
    share_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def _share_token(
    x_share_token: Optional[str] = Header(default=None),
    share_token: Optional[str] = Query(default=None),
) -> Optional[str]:
    return x_share_token or share_token


def _resolve_user_id(
    credentials: Optional[HTTPAuthorizationCredentials],
    x_user_id: Optional[str],
    db: Session,
) -> Optional[int]:
    """Return the caller's user id, None when no credential was presented.

    Raises AuthenticationError for credentials that are present but bad.
    """
    if settings.auth_mode == "header":
        if not x_user_id:
            return None
        try:
            user_id = int(x_user_id)
        except ValueError:
            raise AuthenticationError("X-User-ID must be a numeric user id")
    else:
        if credentials is None:
            return None
        payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
        if payload is None:
            raise AuthenticationError("Invalid or expired token")
        user_id = payload.user_id

    if UserRepository(db).get_active(user_id) is None:
        logger.info("Rejected credential for unknown or inactive user", extra={"user_id": user_id})
        raise AuthenticationError("User not found or deactivated")
    return user_id


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    x_user_id: Optional[str] = Header(default=None),
    share_token: Optional[str] = Depends(_share_token),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require an authenticated user."""
    user_id = _resolve_user_id(credentials, x_user_id, db)
    if user_id is None:
        raise AuthenticationError("Missing authentication credentials")
    return AuthContext(user_id=user_id, share_token=share_token)


def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    x_user_id: Optional[str] = Header(default=None),
    share_token: Optional[str] = Depends(_share_token),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the caller if possible; invalid credentials degrade to anonymous.

    Never raises (unlike require_auth).
    """
    try:
        user_id = _resolve_user_id(credentials, x_user_id, db)
    except AuthenticationError:
        user_id = None
    return AuthContext(user_id=user_id, share_token=share_token)


def require_identity(auth: AuthContext = Depends(optional_auth)) -> AuthContext:
    """Require either an authenticated user or a presented share token.

    Used by write endpoints that edit-grant link holders may call.
    """
    if auth.user_id is None and not auth.share_token:
        raise AuthenticationError("Missing authentication credentials or share token")
    return auth
