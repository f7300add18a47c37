"""
Login state of a client.

    unauthenticated -> authenticating -> authenticated
    authenticated -> unauthenticated   (logout, or a 401 on the next
                                        current-user read)

The server never pushes session expiry; it is noticed the next time the
current user is read.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pos_client.api import ApiError
from pos_client.query_cache import QueryCache, UnauthorizedBehavior
from shared.config.logging import get_logger

logger = get_logger(__name__)

USER_KEY = ("/api/user",)


class AuthStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthSession:
    """Tracks who is logged in, backed by the `/api/user` query."""

    def __init__(self, cache: QueryCache):
        self._cache = cache
        self.status = AuthStatus.UNAUTHENTICATED
        self.error: str | None = None

    @property
    def user(self) -> dict[str, Any] | None:
        return self._cache.get(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    @property
    def tenant_id(self) -> int | None:
        user = self.user
        return user.get("tenantId") if user else None

    async def refresh(self) -> dict[str, Any] | None:
        """Read the current user; a 401 means logged out, not an error."""
        user = await self._cache.fetch(USER_KEY, on401=UnauthorizedBehavior.RETURN_NULL)
        if user is None:
            if self.status is AuthStatus.AUTHENTICATED:
                logger.info("Session ended")
            self.status = AuthStatus.UNAUTHENTICATED
        else:
            self.status = AuthStatus.AUTHENTICATED
        return user

    async def login(self, username: str, password: str) -> dict[str, Any] | None:
        """
        Log in and load the current user.

        Raises:
            ApiError: When the credentials are rejected (status back to unauthenticated).
        """
        self.status = AuthStatus.AUTHENTICATING
        self.error = None
        try:
            await self._cache.api.send_json(
                "POST", "/api/login", {"username": username, "password": password}
            )
        except ApiError as e:
            self.status = AuthStatus.UNAUTHENTICATED
            self.error = e.message
            raise
        return await self.refresh()

    async def logout(self) -> None:
        """Clear the server session and every cached query."""
        await self._cache.api.send_json("POST", "/api/logout")
        self._cache.clear()
        self._cache.set_query_data(USER_KEY, None)
        self.status = AuthStatus.UNAUTHENTICATED
