"""Registration, login and password tests.

Learn: Tests cover:
1. Registration + duplicate prevention (incl. case/whitespace variants)
2. The DB constraint as the last word on duplicates
3. Login → fresh token whose subject is the account
4. Login failures are indistinguishable
5. The password hash never leaves the server
6. Password change
"""

import uuid

import pytest
from sqlalchemy import select

from conftest import PASSWORD, bearer, register, unique_email
from contactbook.auth.jwt import verify_token
from contactbook.auth.password import hash_password, hash_rounds
from contactbook.config import settings
from contactbook.db.models import Account
from contactbook.errors import DuplicateEmail
from contactbook.services.auth_service import AuthService


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_returns_account_and_token(client):
    email = unique_email("reg")
    r = await client.post("/auth/register", json={"email": email, "password": PASSWORD})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    account = body["data"]["account"]
    assert account["email"] == email
    assert set(account) == {"id", "email", "createdAt"}
    assert verify_token(body["data"]["token"]).subject_id == account["id"]


@pytest.mark.asyncio
async def test_register_never_exposes_password(client):
    r = await client.post(
        "/auth/register", json={"email": unique_email(), "password": "plain_secret_99"}
    )
    assert "password" not in r.text.lower()
    assert "plain_secret_99" not in r.text


@pytest.mark.asyncio
async def test_register_normalizes_email(client, db_session):
    r = await client.post(
        "/auth/register", json={"email": "  Mixed.Case@Example.COM ", "password": PASSWORD}
    )
    assert r.status_code == 201
    assert r.json()["data"]["account"]["email"] == "mixed.case@example.com"

    stored = (await db_session.execute(select(Account))).scalars().one()
    assert stored.email == "mixed.case@example.com"
    assert stored.password_hash != PASSWORD


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Can't register the same normalized email twice."""
    r1 = await client.post("/auth/register", json={"email": "A@B.com", "password": PASSWORD})
    assert r1.status_code == 201

    r2 = await client.post("/auth/register", json={"email": " a@b.com ", "password": PASSWORD})
    assert r2.status_code == 409
    assert r2.json() == {"success": False, "message": "Email already registered"}


@pytest.mark.asyncio
async def test_duplicate_caught_by_constraint_when_precheck_misses(db_session, monkeypatch):
    """Simulates losing the race: the pre-check sees nothing, the insert collides."""
    svc = AuthService(db_session)
    await svc.register("race@example.com", PASSWORD)

    async def nobody(self, email):
        return None

    monkeypatch.setattr(AuthService, "get_account_by_email", nobody)
    with pytest.raises(DuplicateEmail):
        await svc.register("RACE@example.com", PASSWORD)

    count = len((await db_session.execute(select(Account))).scalars().all())
    assert count == 1


@pytest.mark.asyncio
async def test_register_validation_errors(client):
    r = await client.post("/auth/register", json={"email": "nope", "password": "123"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert {e["field"] for e in body["errors"]} == {"email", "password"}


@pytest.mark.asyncio
async def test_register_missing_field(client):
    r = await client.post("/auth/register", json={"email": unique_email()})
    assert r.status_code == 400
    assert r.json()["errors"][0] == {
        "field": "password",
        "kind": "required",
        "message": "Field required",
    }


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_then_login(client):
    email = unique_email("login")
    registered = await register(client, email)

    r = await client.post("/auth/login", json={"email": email.upper(), "password": PASSWORD})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["account"]["id"] == registered["account"]["id"]
    assert verify_token(data["token"]).subject_id == registered["account"]["id"]


@pytest.mark.asyncio
async def test_login_issues_independent_tokens(client):
    email = unique_email()
    await register(client, email)
    r1 = await client.post("/auth/login", json={"email": email, "password": PASSWORD})
    r2 = await client.post("/auth/login", json={"email": email, "password": PASSWORD})
    t1, t2 = r1.json()["data"]["token"], r2.json()["data"]["token"]
    # Same second → identical claims are possible; both must verify either way
    assert verify_token(t1).subject_id == verify_token(t2).subject_id


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client):
    email = unique_email()
    await register(client, email)

    unknown = await client.post(
        "/auth/login", json={"email": "nonexistent@x.com", "password": "whatever"}
    )
    wrong = await client.post(
        "/auth/login", json={"email": email, "password": "wrongpassword"}
    )
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()
    assert unknown.json()["message"] == "Invalid email or password"


# ═══════════════════════════════════════════════════════════
# Profile / verify / password change
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_profile(client, alice):
    r = await client.get("/auth/profile", headers=bearer(alice["token"]))
    assert r.status_code == 200
    account = r.json()["data"]["account"]
    assert account["id"] == alice["account"]["id"]
    assert "passwordHash" not in account


@pytest.mark.asyncio
async def test_verify_endpoint(client, alice):
    r = await client.get("/auth/verify", headers=bearer(alice["token"]))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["accountId"] == alice["account"]["id"]
    assert data["account"] == {
        "id": alice["account"]["id"],
        "email": alice["account"]["email"],
    }


@pytest.mark.asyncio
async def test_change_password(client, alice):
    email = alice["account"]["email"]
    r = await client.post(
        "/auth/password",
        json={"currentPassword": PASSWORD, "newPassword": "brand_new_pw"},
        headers=bearer(alice["token"]),
    )
    assert r.status_code == 200

    old = await client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert old.status_code == 401
    new = await client.post("/auth/login", json={"email": email, "password": "brand_new_pw"})
    assert new.status_code == 200

    # Not revoked: the token issued before the change still works
    r = await client.get("/auth/profile", headers=bearer(alice["token"]))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client, alice):
    r = await client.post(
        "/auth/password",
        json={"currentPassword": "not-it", "newPassword": "brand_new_pw"},
        headers=bearer(alice["token"]),
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Current password is incorrect"


@pytest.mark.asyncio
async def test_change_password_requires_auth(client):
    r = await client.post(
        "/auth/password",
        json={"currentPassword": PASSWORD, "newPassword": "brand_new_pw"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_service_get_account(db_session):
    result = await AuthService(db_session).register("svc@example.com", PASSWORD)
    account = await AuthService(db_session).get_account(result.account.id)
    assert account is not None
    assert account.email == "svc@example.com"
    assert await AuthService(db_session).get_account(uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_login_upgrades_outdated_hash(db_session):
    svc = AuthService(db_session)
    result = await svc.register("cost@example.com", PASSWORD)
    account = await svc.get_account(result.account.id)
    account.password_hash = hash_password(PASSWORD, rounds=settings.bcrypt_rounds + 1)
    await db_session.commit()

    await svc.login("cost@example.com", PASSWORD)
    assert hash_rounds(account.password_hash) == settings.bcrypt_rounds


@pytest.mark.asyncio
async def test_register_rejects_overlong_email(client):
    r = await client.post(
        "/auth/register", json={"email": "a" * 300 + "@example.com", "password": PASSWORD}
    )
    assert r.status_code == 400
    assert [(e["field"], e["kind"]) for e in r.json()["errors"]] == [("email", "length")]
