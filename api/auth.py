"""
Login through an OpenID Connect provider with server-side sessions.

Flow:
    /api/login     -> redirect to the provider with a signed state cookie
    /api/callback  -> exchange the code, upsert the user, open a session
    /api/logout    -> drop the session and end it at the provider

The session id travels in an HMAC-signed cookie; the tokens stay in the
``sessions`` table.
"""

import hashlib
import hmac
import secrets
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from config.settings import settings
from core import get_logger, ConfigurationError, IdentityProviderError
from schemas import UserUpsertSchema
from storage.database import AsyncDatabase, get_db

logger = get_logger(__name__)

router = APIRouter()

STATE_COOKIE_NAME = "oidc_state"
STATE_TTL_SECONDS = 600
DEFAULT_TOKEN_TTL_SECONDS = 3600


# ==================== Cookie Signing ====================

def _signature(value: str) -> str:
    return hmac.new(
        key=settings.SESSION_SECRET.encode(),
        msg=value.encode("utf-8", "surrogateescape"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def sign_value(value: str) -> str:
    """Append an HMAC signature: ``<value>.<hex digest>``."""
    return f"{value}.{_signature(value)}"


def unsign_value(signed: Optional[str]) -> Optional[str]:
    """
    Verify a value produced by sign_value.

    Returns:
        The original value, or None if missing or tampered with
    """
    if not signed or "." not in signed:
        return None
    value, received = signed.rsplit(".", 1)
    if not hmac.compare_digest(_signature(value).encode(), received.encode("utf-8", "surrogateescape")):
        return None
    return value


# ==================== Identity Provider ====================

class IdentityProvider:
    """Minimal OpenID Connect relying party using the provider's discovery document."""

    def __init__(
        self,
        issuer_url: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.issuer_url = issuer_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.timeout = timeout
        self.transport = transport
        self._metadata: Optional[Dict[str, Any]] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def metadata(self) -> Dict[str, Any]:
        """Discovery document, fetched once and cached."""
        if self._metadata is None:
            url = f"{self.issuer_url}/.well-known/openid-configuration"
            try:
                async with self._client() as client:
                    response = await client.get(url)
            except httpx.HTTPError as e:
                raise IdentityProviderError("discovery", details=str(e))
            if response.status_code >= 400:
                raise IdentityProviderError("discovery", response.status_code, response.text[:200])
            self._metadata = response.json()
            logger.info("Loaded OIDC discovery document", issuer=self.issuer_url)
        return self._metadata

    async def authorization_url(self, state: str) -> str:
        if not self.client_id:
            raise ConfigurationError("OIDC_CLIENT_ID", "must be set to log in")
        metadata = await self.metadata()
        query = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scopes,
            "state": state,
            "prompt": "login consent",
        }
        return f"{metadata['authorization_endpoint']}?{urlencode(query)}"

    async def _token_request(self, data: Dict[str, str], operation: str) -> Dict[str, Any]:
        metadata = await self.metadata()
        payload = {**data, "client_id": self.client_id}
        if self.client_secret:
            payload["client_secret"] = self.client_secret
        try:
            async with self._client() as client:
                response = await client.post(
                    metadata["token_endpoint"],
                    data=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(operation, details=str(e))
        if response.status_code >= 400:
            raise IdentityProviderError(operation, response.status_code, response.text[:200])
        tokens = response.json()
        if not tokens.get("access_token"):
            raise IdentityProviderError(operation, details="access token missing")
        return tokens

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for tokens."""
        return await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            "token_exchange",
        )

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """Get a fresh access token."""
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            "token_refresh",
        )

    async def fetch_userinfo(self, access_token: str) -> Dict[str, Any]:
        metadata = await self.metadata()
        try:
            async with self._client() as client:
                response = await client.get(
                    metadata["userinfo_endpoint"],
                    headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError("userinfo", details=str(e))
        if response.status_code >= 400:
            raise IdentityProviderError("userinfo", response.status_code, response.text[:200])
        claims = response.json()
        if not claims.get("sub"):
            raise IdentityProviderError("userinfo", details="subject claim missing")
        return claims

    async def end_session_url(self, post_logout_redirect_uri: str) -> Optional[str]:
        """Provider logout URL, or None if the provider does not advertise one."""
        metadata = await self.metadata()
        endpoint = metadata.get("end_session_endpoint")
        if not endpoint:
            return None
        query = {
            "client_id": self.client_id,
            "post_logout_redirect_uri": post_logout_redirect_uri,
        }
        return f"{endpoint}?{urlencode(query)}"


identity_provider = IdentityProvider(
    issuer_url=settings.OIDC_ISSUER_URL,
    client_id=settings.OIDC_CLIENT_ID,
    client_secret=settings.OIDC_CLIENT_SECRET,
    redirect_uri=settings.OIDC_REDIRECT_URI,
    scopes=settings.OIDC_SCOPES,
    timeout=settings.OIDC_TIMEOUT_SECONDS,
)


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def user_from_claims(claims: Dict[str, Any]) -> UserUpsertSchema:
    """Map userinfo claims (provider-specific or standard OIDC names) to a user."""
    return UserUpsertSchema(
        id=str(claims["sub"]),
        email=claims.get("email"),
        first_name=claims.get("first_name") or claims.get("given_name"),
        last_name=claims.get("last_name") or claims.get("family_name"),
        profile_image_url=claims.get("profile_image_url") or claims.get("picture"),
    )


def _token_expiry(tokens: Dict[str, Any]) -> int:
    return int(time.time()) + int(tokens.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS)


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=401, detail="Unauthorized")


# ==================== Dependency ====================

async def require_user(
    request: Request,
    database: AsyncDatabase = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> str:
    """
    Resolve the session cookie to the signed-in user's id.

    Expired access tokens are refreshed when a refresh token is available.

    Raises:
        HTTPException: 401 when there is no valid session
    """
    sid = unsign_value(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if not sid:
        raise _unauthorized()

    sess = await database.get_auth_session(sid)
    if not sess or not sess.get("user_id"):
        raise _unauthorized()

    expires_at = sess.get("expires_at")
    if expires_at and time.time() > expires_at:
        refresh_token = sess.get("refresh_token")
        if not refresh_token:
            await database.delete_auth_session(sid)
            raise _unauthorized()
        try:
            tokens = await provider.refresh(refresh_token)
        except IdentityProviderError as e:
            logger.warning("Token refresh failed", user_id=sess["user_id"], error=e.message)
            await database.delete_auth_session(sid)
            raise _unauthorized()

        sess.update(
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token") or refresh_token,
            expires_at=_token_expiry(tokens),
        )
        await database.update_auth_session(sid, sess)
        logger.debug("Access token refreshed", user_id=sess["user_id"])

    return sess["user_id"]


# ==================== Routes ====================

@router.get("/api/login")
async def login(provider: IdentityProvider = Depends(get_identity_provider)):
    """Start the authorization code flow."""
    state = secrets.token_urlsafe(16)
    url = await provider.authorization_url(state)
    response = RedirectResponse(url=url, status_code=302)
    response.set_cookie(
        STATE_COOKIE_NAME,
        sign_value(state),
        max_age=STATE_TTL_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/api/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    database: AsyncDatabase = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Finish login: verify state, exchange the code and open a session."""
    if error:
        logger.warning("Identity provider returned an error", error=error)
        raise HTTPException(status_code=401, detail="Login failed")

    expected_state = unsign_value(request.cookies.get(STATE_COOKIE_NAME))
    if not code or not state or not expected_state or not hmac.compare_digest(
        state.encode("utf-8", "surrogateescape"), expected_state.encode()
    ):
        logger.warning("Login callback with invalid state")
        raise HTTPException(status_code=400, detail="Invalid login state")

    tokens = await provider.exchange_code(code)
    claims = await provider.fetch_userinfo(tokens["access_token"])
    user = await database.upsert_user(user_from_claims(claims))

    sid = secrets.token_urlsafe(32)
    await database.create_auth_session(
        sid,
        {
            "user_id": user.id,
            "claims": claims,
            "access_token": tokens["access_token"],
            "refresh_token": tokens.get("refresh_token"),
            "expires_at": _token_expiry(tokens),
        },
        expire=datetime.utcnow() + timedelta(days=settings.SESSION_TTL_DAYS),
    )
    logger.info("User logged in", user_id=user.id)

    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(STATE_COOKIE_NAME)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        sign_value(sid),
        max_age=settings.SESSION_TTL_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/api/logout")
async def logout(
    request: Request,
    database: AsyncDatabase = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Drop the local session, then end the provider session when supported."""
    sid = unsign_value(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if sid:
        await database.delete_auth_session(sid)
        logger.info("User logged out")

    home = str(request.base_url)
    try:
        redirect_to = await provider.end_session_url(home) or "/"
    except IdentityProviderError as e:
        logger.warning("Could not build provider logout URL", error=e.message)
        redirect_to = "/"

    response = RedirectResponse(url=redirect_to, status_code=302)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
