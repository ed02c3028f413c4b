# This project was developed with assistance from AI tools.
"""
JWT authentication middleware for Supabase Auth.

Validates Bearer tokens (HS256 shared secret, or the project's JWKS for
asymmetric keys), resolves the caller's ``users`` row, and provides FastAPI
dependencies for route-level authorization.

Set AUTH_DISABLED=true to bypass validation (tests / local dev without Supabase).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db import User, get_db
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import Action, authorize, build_data_scope
from ..core.config import settings
from ..schemas.auth import TokenIdentity, TokenPayload, UserContext

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JWKS cache
# ---------------------------------------------------------------------------

_jwks_data: dict | None = None
_jwks_fetched_at: float = 0


def _fetch_jwks() -> dict:
    """Fetch JSON Web Key Set from Supabase Auth. Raises on failure."""
    url = f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
    response = httpx.get(url, timeout=5)
    response.raise_for_status()
    return response.json()


def _get_jwks(force_refresh: bool = False) -> dict:
    """Return cached JWKS, refreshing if stale or forced."""
    global _jwks_data, _jwks_fetched_at  # noqa: PLW0603

    now = time.time()
    if _jwks_data is None or force_refresh or (now - _jwks_fetched_at) > settings.JWKS_CACHE_TTL:
        _jwks_data = _fetch_jwks()
        _jwks_fetched_at = now

    return _jwks_data


def _get_signing_key(token: str) -> jwt.PyJWK:
    """Find the signing key for the given token from the JWKS."""
    try:
        kid = jwt.get_unverified_header(token).get("kid")

        for force_refresh in (False, True):
            jwk_set = jwt.PyJWKSet.from_dict(_get_jwks(force_refresh=force_refresh))
            for key in jwk_set.keys:
                if key.key_id == kid:
                    return key
            # kid not found -- cache-bust and retry once (key rotation)

        raise jwt.InvalidTokenError(f"No matching key found for kid={kid}")

    except httpx.HTTPError as exc:
        logger.error("Failed to fetch JWKS from Supabase: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------


def _extract_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth[7:]
    return None


def _decode_token(token: str) -> TokenPayload:
    """Validate and decode a Supabase access token."""
    if settings.SUPABASE_JWT_SECRET:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    else:
        signing_key = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    return TokenPayload(**payload)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

_DISABLED_IDENTITY = TokenIdentity(sub="dev-user", email="dev@dvsubmit.local")


async def get_token_identity(request: Request) -> TokenIdentity:
    """FastAPI dependency: verify the bearer token and return its identity.

    Does not touch the database; ``sync-user`` uses this to create the row
    that ``get_current_user`` later resolves.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_IDENTITY

    token = _extract_token(request)
    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    if not payload.email:
        raise _unauthorized("Token carries no email claim")

    return TokenIdentity(sub=payload.sub, email=payload.email)


async def _get_or_create_dev_user(session: AsyncSession) -> User:
    result = await session.execute(
        select(User).where(User.auth_user_id == _DISABLED_IDENTITY.sub)
    )
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            auth_user_id=_DISABLED_IDENTITY.sub,
            email=_DISABLED_IDENTITY.email,
            role=UserRole.SUPER_ADMIN,
            blocked=False,
        )
        session.add(user)
        await session.commit()
        logger.info("Created dev super admin user (AUTH_DISABLED)")
    return user


def _to_context(user: User) -> UserContext:
    return UserContext(
        user_id=user.id,
        auth_user_id=user.auth_user_id,
        email=user.email,
        role=user.role,
        blocked=bool(user.blocked),
        data_scope=build_data_scope(user.role, user.id, blocked=bool(user.blocked)),
    )


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> UserContext:
    """FastAPI dependency: validate JWT and return the caller's UserContext.

    The role and blocked flag come from the ``users`` table, never from token
    claims. A verified token without a synced, non-deleted row is 401.
    When AUTH_DISABLED=true, returns a dev super admin without token validation.
    """
    if settings.AUTH_DISABLED:
        return _to_context(await _get_or_create_dev_user(session))

    identity = await get_token_identity(request)

    result = await session.execute(
        select(User).where(
            User.auth_user_id == identity.sub,
            User.deleted_at.is_(None),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("User account not found")

    return _to_context(user)


# Type aliases for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
CurrentIdentity = Annotated[TokenIdentity, Depends(get_token_identity)]


def require_action(action: Action):
    """Dependency factory: run the authorization gate for ``action``.

    Usage:
        @router.post("/x", dependencies=[Depends(require_action(Action.VERIFY_PAYMENT))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if not authorize(user, action):
            logger.warning(
                "Authorization denied: user=%s role=%s blocked=%s action=%s",
                user.user_id,
                user.role.value,
                user.blocked,
                action.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account blocked" if user.blocked else "Insufficient permissions",
            )
        return user

    return _check
