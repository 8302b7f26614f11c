"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the account id in `sub`, plus `iat`/`exp`, and is signed with the
process-wide secret. Verifying it needs no database access, so any
number of API processes can check tokens without sharing session state.

There is no revocation: a token stays valid until `exp`. Logging out is
the client throwing its copy away.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from contactbook.config import settings


class TokenError(Exception):
    """Raised when token verification fails.

    `reason` distinguishes the failure in logs; every subclass maps to
    the same 401 for the caller.
    """

    reason = "invalid"


class MalformedToken(TokenError):
    reason = "malformed"


class BadSignature(TokenError):
    reason = "bad_signature"


class TokenExpired(TokenError):
    reason = "expired"


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    subject_id: str,
    expires_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed access token for an account id."""
    issued = now or datetime.now(timezone.utc)
    ttl = settings.token_expire_days if expires_days is None else expires_days
    payload = {
        "sub": str(subject_id),
        "iat": issued,
        "exp": issued + timedelta(days=ttl),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenClaims:
    """Verify and decode an access token.

    Returns the claims on success.
    Raises MalformedToken, BadSignature or TokenExpired on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired("Token has expired")
    except jwt.InvalidSignatureError:
        raise BadSignature("Token signature mismatch")
    except jwt.InvalidTokenError as e:
        raise MalformedToken(f"Invalid token: {e}")

    # base64 ignores the trailing pad bits of the last character, so two
    # different signature strings can decode to the same bytes. Only the
    # canonical encoding is accepted.
    signature = token.rsplit(".", 1)[-1]
    if base64url_encode(base64url_decode(signature)).decode("ascii") != signature:
        raise BadSignature("Token signature is not canonical")

    subject = payload["sub"]
    if not isinstance(subject, str) or not subject:
        raise MalformedToken("Invalid token: empty subject")

    return TokenClaims(
        subject_id=subject,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
