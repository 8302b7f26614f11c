"""Pydantic schemas for registration, login and the account view.

Learn: AccountRead is built field-by-field from the ORM row. It has no
password_hash attribute at all, so there is nothing to forget to strip.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from contactbook.schemas.common import CamelModel


class RegisterRequest(BaseModel):
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordChangeRequest(CamelModel):
    current_password: str
    new_password: str


class AccountRead(CamelModel):
    id: uuid.UUID
    email: str
    created_at: datetime


class AuthResult(CamelModel):
    """What register and login hand back: the account view plus a token."""

    account: AccountRead
    token: str
