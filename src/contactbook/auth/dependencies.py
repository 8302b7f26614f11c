"""FastAPI auth dependencies (the auth gate).

Learn: These are used as Depends() in route handlers to turn the
Authorization header into an Identity. Every step fails closed:

    no header / not "Bearer <token>"  → reject
    bad signature / expired / garbage → reject
    valid token, account gone         → reject
    valid token, account present      → Identity

get_current_identity raises 401 on any rejection. get_optional_identity
walks the same steps but answers None instead, so it can never block a
request. Both log the precise rejection reason; the caller only ever
sees the generic message.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.auth.jwt import TokenError, verify_token
from contactbook.db.engine import get_db
from contactbook.db.models import Account
from contactbook.errors import AccountNotFound, InvalidToken

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Never carries the password hash.

    Learn: This is passed explicitly to every contact operation — there
    is no mutable request.user to forget to check.
    """

    id: uuid.UUID
    email: str

    def as_dict(self) -> dict:
        return {"id": str(self.id), "email": self.email}


def extract_bearer(authorization: Optional[str]) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization:
        raise InvalidToken("missing_header")
    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidToken("malformed_header")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise InvalidToken("malformed_header")
    return token


async def resolve_identity(
    authorization: Optional[str], db: AsyncSession
) -> Identity:
    """Run the full gate. Raises InvalidToken / AccountNotFound."""
    token = extract_bearer(authorization)

    try:
        claims = verify_token(token)
    except TokenError as e:
        raise InvalidToken(e.reason)

    try:
        account_id = uuid.UUID(claims.subject_id)
    except ValueError:
        raise InvalidToken("malformed")

    account = await db.get(Account, account_id)
    if account is None:
        raise AccountNotFound()

    return Identity(id=account.id, email=account.email)


async def get_optional_identity(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[Identity]:
    """Resolve the caller if possible (soft auth — never raises).

    Learn: For endpoints whose response varies with authentication but
    doesn't require it. Any failure just means "anonymous", including
    the account lookup failing because the database is down.
    """
    if authorization is None:
        return None
    try:
        identity = await resolve_identity(authorization, db)
    except InvalidToken as e:
        logger.info("auth_gate.anonymous", reason=e.reason)
        return None
    except SQLAlchemyError as e:
        logger.warning("auth_gate.anonymous", reason="store_error", error=str(e))
        return None
    structlog.contextvars.bind_contextvars(account_id=str(identity.id))
    return identity


async def get_current_identity(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """Resolve the caller (hard auth — 401 on any failure)."""
    try:
        identity = await resolve_identity(authorization, db)
    except InvalidToken as e:
        logger.info("auth_gate.rejected", reason=e.reason)
        raise
    structlog.contextvars.bind_contextvars(account_id=str(identity.id))
    return identity
