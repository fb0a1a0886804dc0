"""Tests for owner sign-up, phone login and the /me endpoint."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlmodel import select

from cart_trace.core.errors import RoleAssignmentFailed
from cart_trace.core.security import hash_password
from cart_trace.models.identity import AccountType, Identity
from cart_trace.models.profile import Profile
from cart_trace.models.tenant import Tenant


async def _signup(client: AsyncClient, phone: str, password: str = "owner-pass") -> dict:
    """Helper: sign up a business owner and return the response body."""
    resp = await client.post("/v1/auth/signup", json={
        "business_name": "Mama Mboga Stores",
        "full_name": "Wanjiku Kamau",
        "phone_number": phone,
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_signup_creates_owner_login(client: AsyncClient):
    """Sign-up issues a session for {phone}@owner.internal and a tenant."""
    data = await _signup(client, "0711000001")
    assert data["email"] == "0711000001@owner.internal"
    assert data["account_type"] == "owner"
    assert data["token_type"] == "bearer"
    assert "." in data["access_token"]
    assert data["tenant_id"]


@pytest.mark.asyncio
async def test_signup_duplicate_phone_rejected(client: AsyncClient):
    await _signup(client, "0711000002")
    resp = await client.post("/v1/auth/signup", json={
        "business_name": "Second Shop",
        "full_name": "Otieno Ouma",
        "phone_number": "0711000002",
        "password": "another-pass",
    })
    assert resp.status_code == 400
    assert "already been registered" in resp.json()["error"]


@pytest.mark.asyncio
async def test_signup_short_password_rejected(client: AsyncClient):
    resp = await client.post("/v1/auth/signup", json={
        "business_name": "Shop",
        "full_name": "Achieng",
        "phone_number": "0711000003",
        "password": "123",
    })
    assert resp.status_code == 400
    assert "password" in resp.json()["details"]


@pytest.mark.asyncio
async def test_owner_login_with_phone(client: AsyncClient):
    """Owner logs in by phone; the client attempt fails first, owner succeeds."""
    await _signup(client, "0711000004", password="owner-pass")

    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0711000004",
        "password": "owner-pass",
    })
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["email"] == "0711000004@owner.internal"
    assert data["account_type"] == "owner"


@pytest.mark.asyncio
async def test_login_wrong_password_is_generic(client: AsyncClient):
    await _signup(client, "0711000005", password="owner-pass")

    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0711000005",
        "password": "wrong-pass",
    })
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid phone number or password/PIN"


@pytest.mark.asyncio
async def test_login_unknown_phone_is_generic(client: AsyncClient):
    """No account at all gives the same message as a wrong password."""
    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0799999999",
        "password": "whatever",
    })
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid phone number or password/PIN"


@pytest.mark.asyncio
async def test_login_invalid_phone_format(client: AsyncClient):
    resp = await client.post("/v1/auth/login", json={
        "phone_number": "712345678",
        "password": "whatever",
    })
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid phone number format"


@pytest.mark.asyncio
async def test_client_identity_is_tried_first(client: AsyncClient, session):
    """With both logins present, the client secret wins and the owner secret still works."""
    session.add(Identity(
        email="0711000006@client.internal",
        password_hash=hash_password("client-pin"),
        account_type=AccountType.CLIENT,
    ))
    session.add(Identity(
        email="0711000006@owner.internal",
        password_hash=hash_password("owner-pass"),
        account_type=AccountType.OWNER,
    ))
    await session.commit()

    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0711000006",
        "password": "client-pin",
    })
    assert resp.status_code == 200
    assert resp.json()["email"] == "0711000006@client.internal"

    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0711000006",
        "password": "owner-pass",
    })
    assert resp.status_code == 200
    assert resp.json()["email"] == "0711000006@owner.internal"


@pytest.mark.asyncio
async def test_same_secret_on_both_logins_resolves_to_client(client: AsyncClient, session):
    for domain, account_type in (("client", AccountType.CLIENT), ("owner", AccountType.OWNER)):
        session.add(Identity(
            email=f"0711000007@{domain}.internal",
            password_hash=hash_password("shared-secret"),
            account_type=account_type,
        ))
    await session.commit()

    resp = await client.post("/v1/auth/login", json={
        "phone_number": "0711000007",
        "password": "shared-secret",
    })
    assert resp.status_code == 200
    assert resp.json()["account_type"] == "client"


@pytest.mark.asyncio
async def test_me_returns_profile_tenant_and_role(client: AsyncClient):
    data = await _signup(client, "0711000008")
    headers = {"Authorization": f"Bearer {data['access_token']}"}

    resp = await client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 200
    me = resp.json()
    assert me["user"]["email"] == "0711000008@owner.internal"
    assert me["user"]["account_type"] == "owner"
    assert me["role"] == "admin"
    assert me["profile"]["full_name"] == "Wanjiku Kamau"
    assert me["tenant"]["id"] == data["tenant_id"]
    assert me["tenant"]["business_name"] == "Mama Mboga Stores"


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    resp = await client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"] == "No authorization header"

    resp = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid user token"


@pytest.mark.asyncio
async def test_signup_non_ascii_digits_rejected(client: AsyncClient, session):
    """Only ASCII digits count; other Unicode digits never reach the store."""
    phone = "0١٢٣٤٥٦٧٨٩"
    resp = await client.post("/v1/auth/signup", json={
        "business_name": "Shop",
        "full_name": "Achieng",
        "phone_number": phone,
        "password": "owner-pass",
    })
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid phone number format"

    count = await session.execute(select(func.count()).select_from(Identity))
    assert count.scalar_one() == 0


@pytest.mark.asyncio
async def test_signup_setup_failure_removes_owner_login(client: AsyncClient, session):
    """A failed tenant setup undoes the profile, the tenant and then the owner login."""
    failing_role = AsyncMock(side_effect=RoleAssignmentFailed("user_roles insert rejected"))

    with patch("cart_trace.services.provisioning._insert_role", failing_role):
        resp = await client.post("/v1/auth/signup", json={
            "business_name": "Mama Mboga Stores",
            "full_name": "Wanjiku Kamau",
            "phone_number": "0711000009",
            "password": "owner-pass",
        })

    assert resp.status_code == 400
    assert resp.json() == {"error": "user_roles insert rejected"}
    for model in (Identity, Profile, Tenant):
        count = await session.execute(select(func.count()).select_from(model))
        assert count.scalar_one() == 0, model.__name__

    # The phone is free again
    await _signup(client, "0711000009")


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient):
    resp = await client.options("/v1/reset-password", headers={
        "Origin": "https://app.cart-trace.co.ke",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
    })
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] in ("*", "https://app.cart-trace.co.ke")
    allowed = resp.headers["access-control-allow-headers"].lower()
    for header in ("authorization", "x-client-info", "apikey", "content-type"):
        assert header in allowed
    assert "POST" in resp.headers["access-control-allow-methods"]
