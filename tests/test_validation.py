"""Validation function tests — pure, no app or DB."""

import pytest

from contactbook import validation
from contactbook.errors import FieldError, ValidationFailed


def _kinds(errors: list[FieldError]) -> dict[str, str]:
    return {e.field: e.kind for e in errors}


def test_normalize_email():
    assert validation.normalize_email("  A@B.Com ") == "a@b.com"


def test_registration_ok():
    assert validation.registration_errors(" a@b.com ", "123456") == []


def test_registration_bad_email_and_short_password():
    errors = validation.registration_errors("not-an-email", "12345")
    assert _kinds(errors) == {"email": "format", "password": "length"}


def test_login_requires_password_but_not_length():
    assert validation.login_errors("a@b.com", "x") == []
    assert _kinds(validation.login_errors("a@b.com", "")) == {"password": "required"}


def test_password_change_fields():
    errors = validation.password_change_errors("", "abc")
    assert _kinds(errors) == {"currentPassword": "required", "newPassword": "length"}


def test_contact_create_requires_names_and_phone():
    errors = validation.contact_errors({})
    assert _kinds(errors) == {
        "firstName": "required",
        "lastName": "required",
        "phone": "required",
    }


def test_contact_create_valid():
    fields = {
        "first_name": "Jean",
        "last_name": "Dupont",
        "phone": "+33 6 12 34 56 78",
        "email": "jean@example.com",
        "address": "1 Rue de Paris",
    }
    assert validation.contact_errors(fields) == []


@pytest.mark.parametrize(
    "field, value, kind",
    [
        ("first_name", "J", "length"),
        ("last_name", "x" * 51, "length"),
        ("phone", "12345", "format"),
        ("phone", "0612345678abc", "format"),
        ("email", "nope@", "format"),
        ("email", "a" * 250 + "@example.com", "length"),
        ("address", "x" * 201, "length"),
    ],
)
def test_contact_field_rules(field, value, kind):
    fields = {"first_name": "Jean", "last_name": "Dupont", "phone": "0612345678"}
    fields[field] = value
    errors = validation.contact_errors(fields)
    assert [e.kind for e in errors] == [kind]


def test_partial_update_checks_only_present_fields():
    assert validation.contact_errors({"address": "Lyon"}, partial=True) == []
    errors = validation.contact_errors({"first_name": None}, partial=True)
    assert _kinds(errors) == {"firstName": "required"}


def test_clean_contact_fields():
    cleaned = validation.clean_contact_fields(
        {"first_name": "  Jean ", "email": " JEAN@Example.COM ", "address": "   "}
    )
    assert cleaned == {"first_name": "Jean", "email": "jean@example.com", "address": None}


def test_ensure_valid_raises_with_errors():
    validation.ensure_valid([])
    with pytest.raises(ValidationFailed) as exc:
        validation.ensure_valid(validation.check_phone(None))
    assert exc.value.status_code == 400
    assert exc.value.errors[0].as_dict() == {
        "field": "phone",
        "kind": "required",
        "message": "Phone number is required",
    }


def test_email_fits_the_column():
    longest = "a" * 243 + "@example.com"
    assert len(longest) == validation.EMAIL_MAX
    assert validation.check_email(longest) == []
    assert _kinds(validation.check_email("a" + longest)) == {"email": "length"}
