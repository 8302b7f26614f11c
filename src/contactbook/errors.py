"""Domain errors and their HTTP mapping.

Learn: Services raise these instead of HTTPException so they stay
usable outside a request (CLI, tests). The handlers registered in
main.py turn every AppError into the standard JSON envelope.

Authentication failures deliberately share generic messages: the caller
can't tell "no such account" from "wrong password", or "missing" from
"not yours".
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FieldError:
    """One rejected input field."""

    field: str
    kind: str  # required, length, format
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "kind": self.kind, "message": self.message}


class AppError(Exception):
    """Base class for errors that terminate the current request."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Invalid data"

    def __init__(self, errors: list[FieldError], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class DuplicateEmail(AppError):
    status_code = 409
    default_message = "Email already registered"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid email or password"


class InvalidToken(AppError):
    """Missing, malformed, forged or expired bearer token.

    `reason` is for logs only; the response message stays generic.
    """

    status_code = 401
    default_message = "Authentication required"

    def __init__(self, reason: str, message: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class AccountNotFound(InvalidToken):
    """Token is valid but its account no longer exists."""

    def __init__(self, message: Optional[str] = None):
        super().__init__("account_missing", message)


class ResourceNotFound(AppError):
    status_code = 404
    default_message = "Contact not found"
