"""
Security module: Session authentication, password hashing, rate limiting.
"""

from shared.security.auth import (
    sign_session_token,
    verify_session_token,
    set_session_cookie,
    clear_session_cookie,
    current_user_context,
    websocket_session_context,
    require_tenant,
    require_roles,
)
from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    # auth
    "sign_session_token",
    "verify_session_token",
    "set_session_cookie",
    "clear_session_cookie",
    "current_user_context",
    "websocket_session_context",
    "require_tenant",
    "require_roles",
    # password
    "hash_password",
    "verify_password",
    # rate limiting
    "limiter",
    "rate_limit_exceeded_handler",
]
