"""HS256 bearer tokens for AUTH_MODE=jwt.

A token is ``header.claims.signature`` in unpadded base64url, with the
numeric user id in ``sub``. Tokens minted elsewhere are rejected unless
their ``iss`` claim is ``diagramhub``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "diagramhub"
SUPPORTED_ALGORITHM = "HS256"

# Tolerated clock skew, in seconds, when checking ``exp``.
LEEWAY = 5

_HEADER = {"alg": SUPPORTED_ALGORITHM, "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    user_id: int
    issued_at: datetime
    exp: datetime


def create_token(
    user_id: int,
    secret: str,
    algorithm: str = SUPPORTED_ALGORITHM,
    expires_hours: float = 24,
) -> str:
    """Mint a token for *user_id* that expires after *expires_hours*."""
    if algorithm != SUPPORTED_ALGORITHM:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    claims = {
        "sub": str(user_id),
        "iss": ISSUER,
        "iat": issued,
        "exp": issued + int(expires_hours * 3600),
    }
    signing_input = _segment(_HEADER) + b"." + _segment(claims)
    return (signing_input + b"." + _b64url(_sign(signing_input, secret))).decode("ascii")


def decode_token(token: str, secret: str, algorithm: str = SUPPORTED_ALGORITHM) -> Optional[TokenPayload]:
    """Verify *token* and return its payload, or None if it is not acceptable.

    Bad signatures, foreign issuers, expiry and malformed input all yield
    None; callers turn that into a 401.
    """
    if algorithm != SUPPORTED_ALGORITHM:
        return None

    try:
        header_b64, claims_b64, signature_b64 = token.encode("ascii").split(b".")
        signing_input = header_b64 + b"." + claims_b64
        if not hmac.compare_digest(_sign(signing_input, secret), _unb64url(signature_b64)):
            return None

        header = json.loads(_unb64url(header_b64))
        claims = json.loads(_unb64url(claims_b64))
        if header.get("alg") != SUPPORTED_ALGORITHM or claims.get("iss") != ISSUER:
            return None

        exp = int(claims["exp"])
        if exp + LEEWAY < time.time():
            return None

        return TokenPayload(
            user_id=int(claims["sub"]),
            issued_at=datetime.fromtimestamp(int(claims.get("iat", 0)), tz=timezone.utc),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (ValueError, KeyError, TypeError, AttributeError):
        # json.JSONDecodeError, binascii.Error and UnicodeError are ValueErrors.
        return None


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()


def _segment(obj: dict) -> bytes:
    return _b64url(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _b64url(raw: bytes) -> bytes:
    return base64.urlsafe_b64encode(raw).rstrip(b"=")


def _unb64url(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
