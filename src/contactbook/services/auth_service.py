"""Auth service — registration, login and password changes.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database. The rules that
matter for security live here:

- emails are normalized (trim + lowercase) before every lookup/insert
- the unique constraint on accounts.email is authoritative; the
  SELECT before INSERT is just a fast path, and a concurrent duplicate
  surfaces as IntegrityError → DuplicateEmail
- login never says *why* it failed; unknown email and wrong password
  raise the same InvalidCredentials after the same bcrypt work
- a successful login re-hashes a digest made at an outdated cost
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.auth.dependencies import Identity
from contactbook.auth.jwt import create_access_token
from contactbook.auth.password import (
    hash_password_async,
    hash_rounds,
    verify_password_async,
)
from contactbook.config import settings
from contactbook.db.models import Account
from contactbook.errors import DuplicateEmail, InvalidCredentials
from contactbook.schemas.account import AccountRead, AuthResult
from contactbook.validation import normalize_email

logger = structlog.get_logger()


class AuthService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_account(self, account_id: uuid.UUID) -> Optional[Account]:
        return await self.db.get(Account, account_id)

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        result = await self.db.execute(
            select(Account).where(Account.email == normalize_email(email))
        )
        return result.scalars().first()

    # ─── Register ────────────────────────────────────────

    async def register(self, email: str, password: str) -> AuthResult:
        email = normalize_email(email)

        if await self.get_account_by_email(email) is not None:
            logger.info("auth.register_duplicate", email=email)
            raise DuplicateEmail()

        account = Account(
            email=email,
            password_hash=await hash_password_async(password),
        )
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for this email
            await self.db.rollback()
            logger.info("auth.register_duplicate", email=email, source="constraint")
            raise DuplicateEmail()

        logger.info("auth.registered", account_id=str(account.id), email=email)
        return self._issue(account)

    # ─── Login ───────────────────────────────────────────

    async def login(self, email: str, password: str) -> AuthResult:
        email = normalize_email(email)
        account = await self.get_account_by_email(email)

        # Unknown accounts still pay for a bcrypt check against a decoy.
        password_hash = account.password_hash if account else None
        if not await verify_password_async(password, password_hash) or account is None:
            logger.info(
                "auth.login_failed",
                email=email,
                reason="unknown_account" if account is None else "bad_password",
            )
            raise InvalidCredentials()

        if hash_rounds(account.password_hash) != settings.bcrypt_rounds:
            account.password_hash = await hash_password_async(password)
            await self.db.commit()
            logger.info("auth.password_rehashed", account_id=str(account.id))

        logger.info("auth.login", account_id=str(account.id))
        return self._issue(account)

    # ─── Password change ─────────────────────────────────

    async def change_password(
        self, identity: Identity, current_password: str, new_password: str
    ) -> Account:
        """Re-hash the caller's password. Existing tokens stay valid."""
        account = await self.get_account(identity.id)
        password_hash = account.password_hash if account else None
        if not await verify_password_async(current_password, password_hash) or account is None:
            logger.info("auth.password_change_failed", account_id=str(identity.id))
            raise InvalidCredentials("Current password is incorrect")

        account.password_hash = await hash_password_async(new_password)
        await self.db.commit()
        logger.info("auth.password_changed", account_id=str(account.id))
        return account

    # ─── Helpers ─────────────────────────────────────────

    @staticmethod
    def _issue(account: Account) -> AuthResult:
        """Fresh token for every register/login — nothing is reused."""
        return AuthResult(
            account=AccountRead.model_validate(account),
            token=create_access_token(str(account.id)),
        )
