"""
Shared pytest fixtures for Wisdom Compass tests.
"""

import os

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["COOKIE_SECURE"] = "false"
os.environ["STATIC_DIR"] = "tests/no-frontend"
os.environ["OIDC_ISSUER_URL"] = "https://idp.test/oidc"
os.environ["OIDC_CLIENT_ID"] = "wisdom-compass-test"
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789")

import secrets
import time
from datetime import datetime, timedelta

import httpx
import pytest
import pytest_asyncio

from api.auth import IdentityProvider, get_identity_provider, sign_value
from config.settings import settings
from schemas import UserUpsertSchema
from storage.database import AsyncDatabase, get_db
from storage.seed import seed_database

ISSUER = "https://idp.test/oidc"

DISCOVERY = {
    "issuer": ISSUER,
    "authorization_endpoint": "https://idp.test/auth",
    "token_endpoint": "https://idp.test/token",
    "userinfo_endpoint": "https://idp.test/me",
    "end_session_endpoint": "https://idp.test/session/end",
}


# --- Fake identity provider ---

class FakeIdentityProvider:
    """
    Serves discovery, token and userinfo endpoints through httpx.MockTransport.

    Tweak ``claims``, ``token_status`` or ``expires_in`` per test; every
    request is recorded in ``requests``.
    """

    def __init__(self):
        self.claims = {
            "sub": "user-42",
            "email": "seneca@example.com",
            "first_name": "Lucius",
            "last_name": "Seneca",
            "profile_image_url": "https://example.com/seneca.png",
        }
        self.token_status = 200
        self.expires_in = 3600
        self.requests = []
        self.issued = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == f"{ISSUER}/.well-known/openid-configuration":
            return httpx.Response(200, json=DISCOVERY)

        if url == DISCOVERY["token_endpoint"]:
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            self.issued += 1
            return httpx.Response(
                200,
                json={
                    "access_token": f"access-{self.issued}",
                    "refresh_token": f"refresh-{self.issued}",
                    "expires_in": self.expires_in,
                },
            )

        if url == DISCOVERY["userinfo_endpoint"]:
            if not request.headers.get("Authorization", "").startswith("Bearer "):
                return httpx.Response(401)
            return httpx.Response(200, json=self.claims)

        return httpx.Response(404)

    def token_requests(self):
        return [r for r in self.requests if str(r.url) == DISCOVERY["token_endpoint"]]


@pytest.fixture
def fake_idp():
    return FakeIdentityProvider()


@pytest.fixture
def identity_provider(fake_idp):
    """IdentityProvider wired to the fake endpoints."""
    return IdentityProvider(
        issuer_url=ISSUER,
        client_id="wisdom-compass-test",
        client_secret="shh",
        redirect_uri="http://testserver/api/callback",
        scopes="openid email profile offline_access",
        transport=httpx.MockTransport(fake_idp.handler),
    )


# --- Database fixtures ---

@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database with tables, one per test."""
    database = AsyncDatabase("sqlite+aiosqlite:///:memory:")
    await database.create_tables()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def seeded_database(database):
    """Database with the default catalogue loaded."""
    await seed_database(database)
    return database


@pytest_asyncio.fixture
async def user(seeded_database):
    """A signed-up user."""
    return await seeded_database.upsert_user(
        UserUpsertSchema(
            id="user-1",
            email="marcus@example.com",
            first_name="Marcus",
            last_name="Aurelius",
        )
    )


async def open_session(database: AsyncDatabase, user_id: str, **overrides) -> str:
    """Create a server-side login session and return its signed cookie value."""
    sid = secrets.token_urlsafe(16)
    sess = {
        "user_id": user_id,
        "claims": {"sub": user_id},
        "access_token": "access-0",
        "refresh_token": "refresh-0",
        "expires_at": int(time.time()) + 3600,
    }
    sess.update(overrides)
    await database.create_auth_session(sid, sess, expire=datetime.utcnow() + timedelta(days=1))
    return sign_value(sid)


# --- HTTP clients ---

@pytest_asyncio.fixture
async def client(seeded_database, identity_provider):
    """Anonymous client against the app, backed by the test database."""
    from api.server import app

    app.dependency_overrides[get_db] = lambda: seeded_database
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client(client, seeded_database, user):
    """Client logged in as the ``user`` fixture."""
    client.cookies.set(settings.SESSION_COOKIE_NAME, await open_session(seeded_database, user.id))
    return client


@pytest.fixture
def session_cookie():
    """Factory for signed session cookies, see open_session."""
    return open_session
