"""Input validation — pure functions, no I/O.

Learn: Each check returns a list of FieldError(field, kind, message)
instead of raising, so checks compose: the route layer concatenates the
lists it needs and calls ensure_valid() once. Services only ever see
data that already passed, already trimmed and normalized.
"""

import re
from typing import Any, Optional

from contactbook.errors import FieldError, ValidationFailed

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s+\-()]{10,20}$")

MIN_PASSWORD_LENGTH = 6
NAME_MIN, NAME_MAX = 2, 50
ADDRESS_MAX = 200
EMAIL_MAX = 255

# snake_case attribute → camelCase wire name, for error reporting
_WIRE = {
    "first_name": "firstName",
    "last_name": "lastName",
    "phone": "phone",
    "email": "email",
    "address": "address",
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_valid(errors: list[FieldError]) -> None:
    if errors:
        raise ValidationFailed(errors)


# ─── Field checks ────────────────────────────────────────


def check_email(value: Optional[str], field: str = "email") -> list[FieldError]:
    if value is None or not value.strip():
        return [FieldError(field, "required", "Email is required")]
    if len(value.strip()) > EMAIL_MAX:
        return [
            FieldError(field, "length", f"Email cannot exceed {EMAIL_MAX} characters")
        ]
    if not EMAIL_RE.match(value.strip()):
        return [FieldError(field, "format", "Please enter a valid email")]
    return []


def check_new_password(value: Optional[str], field: str = "password") -> list[FieldError]:
    if not value:
        return [FieldError(field, "required", "Password is required")]
    if len(value) < MIN_PASSWORD_LENGTH:
        return [
            FieldError(
                field,
                "length",
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        ]
    return []


def check_password_present(value: Optional[str], field: str = "password") -> list[FieldError]:
    if not value:
        return [FieldError(field, "required", "Password is required")]
    return []


def check_name(value: Optional[str], field: str) -> list[FieldError]:
    label = "First name" if field == "firstName" else "Last name"
    if value is None or not value.strip():
        return [FieldError(field, "required", f"{label} is required")]
    if not NAME_MIN <= len(value.strip()) <= NAME_MAX:
        return [
            FieldError(
                field,
                "length",
                f"{label} must be between {NAME_MIN} and {NAME_MAX} characters",
            )
        ]
    return []


def check_phone(value: Optional[str], field: str = "phone") -> list[FieldError]:
    if value is None or not value.strip():
        return [FieldError(field, "required", "Phone number is required")]
    if not PHONE_RE.match(value.strip()):
        return [
            FieldError(
                field,
                "format",
                "Phone number must be 10 to 20 digits, spaces, +, - or ()",
            )
        ]
    return []


def check_address(value: Optional[str], field: str = "address") -> list[FieldError]:
    if value is not None and len(value.strip()) > ADDRESS_MAX:
        return [
            FieldError(
                field, "length", f"Address cannot exceed {ADDRESS_MAX} characters"
            )
        ]
    return []


# ─── Composed checks ─────────────────────────────────────


def registration_errors(email: Optional[str], password: Optional[str]) -> list[FieldError]:
    return check_email(email) + check_new_password(password)


def login_errors(email: Optional[str], password: Optional[str]) -> list[FieldError]:
    return check_email(email) + check_password_present(password)


def password_change_errors(current: Optional[str], new: Optional[str]) -> list[FieldError]:
    return check_password_present(current, "currentPassword") + check_new_password(
        new, "newPassword"
    )


def contact_errors(fields: dict[str, Any], partial: bool = False) -> list[FieldError]:
    """Validate contact fields (snake_case keys).

    With partial=True only the keys present are checked, but a present
    required field still can't be blank or null.
    """
    errors: list[FieldError] = []
    for name in ("first_name", "last_name"):
        if not partial or name in fields:
            errors += check_name(fields.get(name), _WIRE[name])
    if not partial or "phone" in fields:
        errors += check_phone(fields.get("phone"))
    email = fields.get("email")
    if email is not None and email.strip():
        errors += check_email(email)
    errors += check_address(fields.get("address"))
    return errors


def clean_contact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Trim strings, lowercase email, turn blank optional values into None."""
    cleaned: dict[str, Any] = {}
    for name, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        if name in ("email", "address") and not value:
            value = None
        if name == "email" and value is not None:
            value = value.lower()
        cleaned[name] = value
    return cleaned
