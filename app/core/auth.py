"""Bearer-token authentication against Auth0, plus the route guards.

Jobly does not store passwords or issue tokens. A caller is identified by an
Auth0 access token. Admin rights come from the `jobly:admin` permission, and
the Jobly username comes from a configurable claim.
"""

import asyncio
from datetime import UTC, datetime
from typing import Annotated, Any

import httpx
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import AppEnvironment, Settings, get_settings
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.tracing import get_tracing_headers

logger = structlog.get_logger(__name__)

JOBLY_ADMIN = "jobly:admin"

INVALID_TOKEN = "Invalid or expired token"

_bearer = HTTPBearer(auto_error=False)

_http_client: httpx.AsyncClient | None = None
_jwks_cache: dict[str, Any] | None = None
_cache_time: datetime | None = None
_cache_lock = asyncio.Lock()


class AuthenticatedUser(BaseModel):
    user_id: str
    username: str | None = None
    email: str | None = None
    permissions: list[str] = []

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    @property
    def is_admin(self) -> bool:
        return self.has_permission(JOBLY_ADMIN)

    def can_act_as(self, username: str) -> bool:
        """Admins act on any user; everyone else only on themselves."""
        return self.is_admin or (self.username is not None and self.username == username)


async def get_async_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=httpx.Timeout(10.0))
    return _http_client


async def close_async_http_client() -> None:
    global _http_client
    client, _http_client = _http_client, None
    if client is not None and not client.is_closed:
        await client.aclose()


def _jwks_is_fresh(now: datetime, ttl_seconds: int) -> bool:
    return (
        _jwks_cache is not None
        and _cache_time is not None
        and (now - _cache_time).total_seconds() < ttl_seconds
    )


async def fetch_jwks() -> dict[str, Any]:
    """Return the tenant's JWKS.

    Cached for `AUTH0_JWKS_CACHE_TTL` seconds. If a refresh fails, the stale
    copy is served; with nothing cached the caller gets a 401.
    """
    global _jwks_cache, _cache_time

    settings = get_settings()
    now = datetime.now(UTC)

    async with _cache_lock:
        if _jwks_is_fresh(now, settings.auth0.jwks_cache_ttl):
            return _jwks_cache

        client = await get_async_http_client()
        try:
            response = await client.get(settings.auth0.jwks_url, headers=get_tracing_headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            if _jwks_cache is not None:
                logger.warning("JWKS refresh failed, serving stale keys", error=str(exc))
                return _jwks_cache
            logger.error("JWKS fetch failed", url=settings.auth0.jwks_url, error=str(exc))
            raise UnauthorizedError(
                "Unable to verify token: authentication service unavailable"
            ) from exc

        _jwks_cache = response.json()
        _cache_time = now
        return _jwks_cache


def _signing_key(jwks: dict[str, Any], kid: str | None) -> dict[str, str] | None:
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return {field: key[field] for field in ("kty", "kid", "use", "n", "e") if field in key}
    return None


async def verify_token_async(token: str) -> dict[str, Any]:
    """Verify signature, audience, issuer and expiry; return the claims."""
    settings = get_settings()
    jwks = await fetch_jwks()

    try:
        key = _signing_key(jwks, jwt.get_unverified_header(token).get("kid"))
        if key is None:
            raise UnauthorizedError(INVALID_TOKEN)
        return jwt.decode(
            token,
            key,
            algorithms=settings.auth0.algorithms_list,
            audience=settings.auth0.audience,
            issuer=settings.auth0.issuer_url,
        )
    except JWTError as exc:
        logger.info("Token rejected", reason=str(exc))
        raise UnauthorizedError(INVALID_TOKEN) from exc


def _user_from_claims(claims: dict[str, Any], settings: Settings) -> AuthenticatedUser:
    return AuthenticatedUser(
        user_id=claims.get("sub", ""),
        username=claims.get(settings.auth0.username_claim),
        email=claims.get("email"),
        permissions=claims.get("permissions", []),
    )


def _create_bypass_user() -> AuthenticatedUser:
    """Local-only stand-in admin used when JWT validation is switched off."""
    return AuthenticatedUser(
        user_id="local-dev-user",
        username="local-dev-user",
        email="local-dev@example.com",
        permissions=[JOBLY_ADMIN],
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthenticatedUser:
    settings = get_settings()

    if settings.security.skip_jwt_validation:
        if settings.app.env != AppEnvironment.LOCAL:
            logger.error("JWT bypass requested outside local", app_env=settings.app.env.value)
            raise UnauthorizedError("JWT bypass is only allowed in local environment")
        return _create_bypass_user()

    if credentials is None:
        raise UnauthorizedError("Missing authorization header")

    return _user_from_claims(await verify_token_async(credentials.credentials), settings)


def require_admin(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if not user.is_admin:
        logger.info("Admin required", user_id=user.user_id)
        raise ForbiddenError("Admin access required", details={"required": JOBLY_ADMIN})
    return user


def require_admin_or_same_user(
    username: str,
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Guard for `/users/{username}` routes."""
    if not user.can_act_as(username):
        logger.info("Access to another user denied", user_id=user.user_id, target=username)
        raise ForbiddenError("Admin or same user required", details={"username": username})
    return user


RequireAdmin = Annotated[AuthenticatedUser, Depends(require_admin)]
RequireAdminOrSameUser = Annotated[AuthenticatedUser, Depends(require_admin_or_same_user)]
