"""
Authentication and authorization utilities.

Staff sessions are JWTs carried in an httpOnly cookie. The same token
gates both the REST API and the realtime channel upgrade.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Request, Response, WebSocket

from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.config.logging import get_logger
from shared.utils.exceptions import ForbiddenError, InsufficientRoleError, UnauthorizedError

logger = get_logger(__name__)


# =============================================================================
# Session token
# =============================================================================


def sign_session_token(
    user_id: int,
    tenant_id: int,
    role: str,
    username: str,
    ttl_seconds: int | None = None,
) -> str:
    """
    Sign a session token for a staff member.

    Args:
        user_id: Authenticated user's ID.
        tenant_id: Tenant the user belongs to.
        role: User role (admin, manager, waiter, chef).
        username: Login name, kept for display and audit.
        ttl_seconds: Token lifetime. Defaults to the session cookie lifetime.

    Returns:
        Signed JWT string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.session_expire_days * 24 * 60 * 60

    now = int(time.time())
    data = {
        "sub": str(user_id),
        "tenant_id": tenant_id,
        "role": role,
        "username": username,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_session_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Returns:
        Decoded claims.

    Raises:
        UnauthorizedError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session expired")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message to the client
        logger.warning("Session token validation failed", error=str(e))
        raise UnauthorizedError("Invalid session")

    if "sub" not in payload or "tenant_id" not in payload:
        raise UnauthorizedError("Invalid session: missing claims")

    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid session: malformed subject claim")

    if not isinstance(payload["tenant_id"], int):
        raise UnauthorizedError("Invalid session: malformed tenant claim")

    return payload


# =============================================================================
# Cookie helpers
# =============================================================================


def set_session_cookie(response: Response, token: str) -> None:
    """
    Set the session token as an httpOnly cookie.

    - httponly: not readable from JavaScript
    - secure: HTTPS only (configurable for development)
    - samesite: CSRF protection
    """
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        path="/",
        domain=settings.cookie_domain or None,
    )


def clear_session_cookie(response: Response) -> None:
    """Clear the session cookie on logout."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        domain=settings.cookie_domain or None,
    )


# =============================================================================
# FastAPI dependencies
# =============================================================================


def current_user_context(request: Request) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from the session cookie.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx = Depends(current_user_context)):
            user_id = int(ctx["sub"])
            tenant_id = ctx["tenant_id"]

    Raises:
        UnauthorizedError: 401 when the cookie is missing or invalid.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError("Not authenticated")
    return verify_session_token(token)


def websocket_session_context(websocket: WebSocket) -> dict[str, Any] | None:
    """
    Read the session from a WebSocket upgrade request.

    Returns None instead of raising so the endpoint can decide how to
    close the socket.
    """
    token = websocket.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        return verify_session_token(token)
    except UnauthorizedError:
        return None


def require_tenant(ctx: dict[str, Any], tenant_id: int) -> None:
    """
    Verify that the session belongs to the tenant addressed by the request.

    Raises:
        ForbiddenError: If the tenant does not match.
    """
    if ctx.get("tenant_id") != tenant_id:
        raise ForbiddenError(
            "access this tenant",
            user_id=ctx.get("sub"),
            tenant_id=tenant_id,
        )


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the user has one of the allowed roles.

    Raises:
        InsufficientRoleError: If the user's role is not allowed.
    """
    if ctx.get("role") not in allowed:
        raise InsufficientRoleError(allowed, user_id=ctx.get("sub"))
