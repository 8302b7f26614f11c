"""Auth API — registration, login, profile, password change.

Learn: Routes for account authentication:
- POST /auth/register → create an account, returns {account, token}
- POST /auth/login → email/password → {account, token}
- GET /auth/profile → current account info
- GET /auth/verify → 200 if the presented token is still good
- POST /auth/password → change password (current password required)

There is no /auth/logout: tokens are stateless, so logging out is the
client discarding its copy.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook import validation
from contactbook.auth.dependencies import Identity, get_current_identity
from contactbook.db.engine import get_db
from contactbook.errors import AccountNotFound
from contactbook.schemas.account import (
    AccountRead,
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
)
from contactbook.schemas.common import ok
from contactbook.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new account and sign it in."""
    validation.ensure_valid(validation.registration_errors(body.email, body.password))
    result = await svc.register(body.email, body.password)
    return ok("Account created", result)


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → fresh token."""
    validation.ensure_valid(validation.login_errors(body.email, body.password))
    result = await svc.login(body.email, body.password)
    return ok("Login successful", result)


# ─── Current account ─────────────────────────────────────


@router.get("/profile")
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    svc: AuthService = Depends(_svc),
):
    """Get the current account's info."""
    account = await svc.get_account(identity.id)
    if account is None:
        raise AccountNotFound()
    return ok("Profile retrieved", {"account": AccountRead.model_validate(account)})


@router.get("/verify")
async def verify(identity: Identity = Depends(get_current_identity)):
    """Cheap token check for clients restoring a saved session."""
    return ok(
        "Token is valid",
        {"accountId": str(identity.id), "account": identity.as_dict()},
    )


@router.post("/password")
async def change_password(
    body: PasswordChangeRequest,
    identity: Identity = Depends(get_current_identity),
    svc: AuthService = Depends(_svc),
):
    validation.ensure_valid(
        validation.password_change_errors(body.current_password, body.new_password)
    )
    await svc.change_password(identity, body.current_password, body.new_password)
    return ok("Password updated")
