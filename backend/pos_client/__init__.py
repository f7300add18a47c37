"""
Python client for the POS API.

Mirrors what the staff web app does: an HTTP client with the session
cookie, a query cache keyed like the web app's queries, the login state
machine and the realtime connection that keeps the cache fresh.
"""

from .api import ApiClient, ApiError, UnauthorizedError
from .auth_state import AuthSession, AuthStatus
from .query_cache import CacheEntry, QueryCache, QueryKey, UnauthorizedBehavior, build_url
from .realtime import RealtimeClient

__all__ = [
    "ApiClient",
    "ApiError",
    "UnauthorizedError",
    "AuthSession",
    "AuthStatus",
    "CacheEntry",
    "QueryCache",
    "QueryKey",
    "UnauthorizedBehavior",
    "build_url",
    "RealtimeClient",
]
