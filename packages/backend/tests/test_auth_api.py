"""Registration, Basic login on /user, and the JWT round trip.

Covers:
1. Customer registration + duplicate prevention + validation
2. Basic login on /user → JWT in the Authorization response header
3. Using, tampering with and expiring that token
4. Request validation of Basic credentials
5. Token and hashing parameters taken from the app's own Settings
"""

import base64

import pytest
from httpx import ASGITransport, AsyncClient

from bankgate.auth.jwt import TokenError, create_access_token, verify_token
from bankgate.auth.users import get_customer_by_email
from bankgate.config import Settings
from bankgate.main import create_app
from conftest import USER_PASSWORD, basic_auth


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_customer(client):
    r = await client.post(
        "/register",
        json={
            "name": "Admin Person",
            "email": "admin.person@example.com",
            "mobile_number": "5559876543",
            "password": "secure_password_123",
            "role": "ADMIN",
        },
    )
    assert r.status_code == 201
    customer = r.json()
    assert customer["email"] == "admin.person@example.com"
    assert customer["role"] == "ADMIN"
    assert customer["authorities"] == ["ROLE_ADMIN"]
    assert "password" not in customer
    assert "password_hash" not in customer


@pytest.mark.asyncio
async def test_register_duplicate_email(client, user):
    r = await client.post(
        "/register",
        json={
            "name": "Copy Cat",
            "email": user["email"],
            "mobile_number": "5550000000",
            "password": "password_123",
        },
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_register_duplicate_that_slips_past_the_lookup(client, user, monkeypatch):
    """A concurrent twin passes the e-mail lookup; the unique constraint still gives 409."""

    async def not_found(db, email):
        return None

    monkeypatch.setattr("bankgate.api.users.get_customer_by_email", not_found)
    r = await client.post(
        "/register",
        json={
            "name": "Copy Cat",
            "email": user["email"],
            "mobile_number": "5550000000",
            "password": "password_123",
        },
    )
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await client.post(
        "/register",
        json={
            "name": "Short",
            "email": "short@example.com",
            "mobile_number": "5550000000",
            "password": "abc",
        },
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_register_unknown_role(client):
    r = await client.post(
        "/register",
        json={
            "name": "Root",
            "email": "root@example.com",
            "mobile_number": "5550000000",
            "password": "password_123",
            "role": "ROOT",
        },
    )
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Login (GET /user with Basic credentials)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_issues_token(client, user):
    r = await client.get("/user", headers=basic_auth(user["email"], user["password"]))
    assert r.status_code == 200
    assert r.json()["email"] == user["email"]

    payload = verify_token(r.headers["Authorization"])
    assert payload["username"] == user["email"]
    assert payload["authorities"] == "ROLE_USER"


@pytest.mark.asyncio
async def test_login_wrong_password(client, user):
    r = await client.get("/user", headers=basic_auth(user["email"], "wrong_password"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid password!"
    assert "Authorization" not in r.headers


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    r = await client.get("/user", headers=basic_auth("nobody@example.com", "whatever"))
    assert r.status_code == 401
    assert r.json()["detail"] == "No user registered with this details!"


@pytest.mark.asyncio
async def test_login_path_ignores_tokens(client, user_token):
    """/user only accepts Basic credentials; a JWT there is not validated."""
    r = await client.get("/user", headers={"Authorization": user_token})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_username_containing_test_rejected(client):
    """Request validation refuses test accounts before authentication runs."""
    r = await client.get("/user", headers=basic_auth("Tester@example.com", USER_PASSWORD))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_undecodable_basic_header(client):
    r = await client.get("/user", headers={"Authorization": "Basic %%%not-base64%%%"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Failed to decode basic authentication token"


@pytest.mark.asyncio
async def test_basic_header_without_colon(client):
    encoded = base64.b64encode(b"no-separator").decode()
    r = await client.get("/user", headers={"Authorization": f"Basic {encoded}"})
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Using the token
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_token_with_bearer_prefix(client, user_token):
    r = await client.get("/myAccount", headers={"Authorization": f"Bearer {user_token}"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_bearer_prefix_is_case_insensitive(client, user_token):
    for scheme in ("bearer", "BEARER"):
        r = await client.get("/myAccount", headers={"Authorization": f"{scheme} {user_token}"})
        assert r.status_code == 200, scheme


@pytest.mark.asyncio
async def test_invalid_token(client):
    r = await client.get("/myAccount", headers={"Authorization": "invalid_token_here"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid Token received!"


@pytest.mark.asyncio
async def test_tampered_token(client, user_token):
    header, payload, signature = user_token.split(".")
    forged = f"{header}.{payload}.{signature[::-1]}"
    r = await client.get("/myAccount", headers={"Authorization": forged})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_expired_token(client, user):
    token = create_access_token(user["email"], ["ROLE_USER"], expires_minutes=-5)
    r = await client.get("/myAccount", headers={"Authorization": token})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_basic_credentials_rejected_outside_login_in_jwt_mode(client, user):
    """In JWT mode only /user takes Basic; elsewhere the header must be a token."""
    r = await client.get("/myAccount", headers=basic_auth(user["email"], user["password"]))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid Token received!"


@pytest.mark.asyncio
async def test_token_is_not_reissued_outside_login(client, user_token):
    r = await client.get("/myAccount", headers={"Authorization": user_token})
    assert r.status_code == 200
    assert "Authorization" not in r.headers


# ═══════════════════════════════════════════════════════════
# Settings passed to create_app
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_app_settings_drive_token_and_hashing(session_factory):
    """Issuer, lifetime and bcrypt rounds come from the app's own Settings."""
    app_settings = Settings(jwt_issuer="OtherIssuer", jwt_expire_minutes=5, bcrypt_rounds=5)
    other_app = create_app(app_settings)
    other_app.state.session_factory = session_factory

    transport = ASGITransport(app=other_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.post(
            "/register",
            json={
                "name": "Other",
                "email": "other@example.com",
                "mobile_number": "5550000000",
                "password": USER_PASSWORD,
            },
        )
        assert r.status_code == 201

        r = await ac.get("/user", headers=basic_auth("other@example.com", USER_PASSWORD))
        assert r.status_code == 200
        token = r.headers["Authorization"]

        # The same app accepts its own token
        r = await ac.get("/myAccount", headers={"Authorization": token})
        assert r.status_code == 200

    payload = verify_token(token, app_settings)
    assert payload["iss"] == "OtherIssuer"
    assert payload["exp"] - payload["iat"] == 5 * 60

    # ...and a default-configured verifier does not
    with pytest.raises(TokenError):
        verify_token(token)

    async with session_factory() as db:
        customer = await get_customer_by_email(db, "other@example.com")
    assert int(customer.password_hash.split("$")[2]) == 5


def test_app_builds_its_own_engine():
    other_app = create_app(Settings(database_url="sqlite+aiosqlite://"))
    assert other_app.state.engine.url.drivername == "sqlite+aiosqlite"
    assert other_app.state.session_factory.kw["bind"] is other_app.state.engine
