"""
Integration tests for login, callback, logout and token refresh against a
fake OpenID Connect provider.
"""

import time
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from api.auth import IdentityProvider, STATE_COOKIE_NAME, sign_value, unsign_value
from core import ConfigurationError, IdentityProviderError


async def log_in(client):
    """Run /api/login and /api/callback, returning the callback response."""
    response = await client.get("/api/login")
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    return await client.get("/api/callback", params={"code": "auth-code", "state": state})


class TestLogin:

    @pytest.mark.asyncio
    async def test_redirects_to_provider(self, client):
        response = await client.get("/api/login")
        assert response.status_code == 302

        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == "https://idp.test/auth"
        query = parse_qs(location.query)
        assert query["client_id"] == ["wisdom-compass-test"]
        assert query["response_type"] == ["code"]
        assert query["redirect_uri"] == ["http://testserver/api/callback"]
        assert "offline_access" in query["scope"][0]

        state_cookie = client.cookies.get(STATE_COOKIE_NAME)
        assert unsign_value(state_cookie) == query["state"][0]

    @pytest.mark.asyncio
    async def test_callback_creates_user_and_session(self, client, seeded_database, fake_idp):
        response = await log_in(client)
        assert response.status_code == 302
        assert response.headers["location"] == "/"

        user = await seeded_database.get_user("user-42")
        assert user.email == "seneca@example.com"
        assert user.first_name == "Lucius"

        sid = unsign_value(client.cookies.get("sid"))
        sess = await seeded_database.get_auth_session(sid)
        assert sess["user_id"] == "user-42"
        assert sess["access_token"] == "access-1"
        assert sess["refresh_token"] == "refresh-1"

        me = await client.get("/api/auth/user")
        assert me.status_code == 200
        assert me.json()["lastName"] == "Seneca"

    @pytest.mark.asyncio
    async def test_second_login_refreshes_profile(self, client, seeded_database, fake_idp):
        await log_in(client)
        fake_idp.claims = {**fake_idp.claims, "first_name": "Seneca the Younger"}
        await log_in(client)
        assert (await seeded_database.get_user("user-42")).first_name == "Seneca the Younger"

    @pytest.mark.asyncio
    async def test_callback_with_wrong_state(self, client):
        await client.get("/api/login")
        response = await client.get("/api/callback", params={"code": "c", "state": "guessed"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid login state"}

    @pytest.mark.asyncio
    async def test_callback_with_non_ascii_state(self, client):
        await client.get("/api/login")
        response = await client.get("/api/callback", params={"code": "c", "state": "é"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid login state"}

    @pytest.mark.asyncio
    async def test_callback_without_state_cookie(self, client):
        response = await client.get("/api/callback", params={"code": "c", "state": "s"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_callback_with_provider_error(self, client):
        response = await client.get("/api/callback", params={"error": "access_denied"})
        assert response.status_code == 401
        assert response.json() == {"message": "Login failed"}

    @pytest.mark.asyncio
    async def test_failed_code_exchange(self, client, fake_idp, seeded_database):
        fake_idp.token_status = 400
        response = await log_in(client)
        assert response.status_code == 502
        assert await seeded_database.get_user("user-42") is None


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client, seeded_database):
        await log_in(client)
        sid = unsign_value(client.cookies.get("sid"))

        response = await client.get("/api/logout")
        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.path == "/session/end"
        assert parse_qs(location.query)["post_logout_redirect_uri"] == ["http://testserver/"]

        assert await seeded_database.get_auth_session(sid) is None

    @pytest.mark.asyncio
    async def test_logout_without_session(self, client):
        response = await client.get("/api/logout")
        assert response.status_code == 302


class TestTokenRefresh:

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed(self, client, seeded_database, user, fake_idp, session_cookie):
        cookie = await session_cookie(seeded_database, user.id, expires_at=int(time.time()) - 10)
        client.cookies.set("sid", cookie)

        response = await client.get("/api/auth/user")
        assert response.status_code == 200

        sess = await seeded_database.get_auth_session(unsign_value(cookie))
        assert sess["access_token"] == "access-1"
        assert sess["expires_at"] > time.time()
        assert len(fake_idp.token_requests()) == 1
        assert b"grant_type=refresh_token" in fake_idp.token_requests()[0].content

    @pytest.mark.asyncio
    async def test_live_token_is_not_refreshed(self, auth_client, fake_idp):
        assert (await auth_client.get("/api/auth/user")).status_code == 200
        assert fake_idp.token_requests() == []

    @pytest.mark.asyncio
    async def test_failed_refresh_logs_out(self, client, seeded_database, user, fake_idp, session_cookie):
        fake_idp.token_status = 401
        cookie = await session_cookie(seeded_database, user.id, expires_at=int(time.time()) - 10)
        client.cookies.set("sid", cookie)

        response = await client.get("/api/auth/user")
        assert response.status_code == 401
        assert await seeded_database.get_auth_session(unsign_value(cookie)) is None

    @pytest.mark.asyncio
    async def test_expired_without_refresh_token(self, client, seeded_database, user, session_cookie):
        cookie = await session_cookie(
            seeded_database, user.id, expires_at=int(time.time()) - 10, refresh_token=None
        )
        client.cookies.set("sid", cookie)
        assert (await client.get("/api/auth/user")).status_code == 401


class TestIdentityProvider:

    @pytest.mark.asyncio
    async def test_discovery_is_cached(self, identity_provider, fake_idp):
        await identity_provider.metadata()
        await identity_provider.metadata()
        assert len(fake_idp.requests) == 1

    @pytest.mark.asyncio
    async def test_discovery_failure(self):
        provider = IdentityProvider(
            issuer_url="https://down.test",
            client_id="x",
            client_secret="",
            redirect_uri="http://testserver/api/callback",
            scopes="openid",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.metadata()
        assert exc_info.value.context["status_code"] == 503

    @pytest.mark.asyncio
    async def test_userinfo_without_subject(self, identity_provider, fake_idp):
        fake_idp.claims = {"email": "nobody@example.com"}
        with pytest.raises(IdentityProviderError):
            await identity_provider.fetch_userinfo("token")

    @pytest.mark.asyncio
    async def test_network_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = IdentityProvider(
            issuer_url="https://down.test",
            client_id="x",
            client_secret="",
            redirect_uri="http://testserver/api/callback",
            scopes="openid",
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(IdentityProviderError):
            await provider.authorization_url(sign_value("state"))

    @pytest.mark.asyncio
    async def test_login_needs_client_id(self, fake_idp):
        provider = IdentityProvider(
            issuer_url="https://idp.test/oidc",
            client_id="",
            client_secret="",
            redirect_uri="http://testserver/api/callback",
            scopes="openid",
            transport=httpx.MockTransport(fake_idp.handler),
        )
        with pytest.raises(ConfigurationError):
            await provider.authorization_url("state")
        assert fake_idp.requests == []
