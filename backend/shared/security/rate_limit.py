"""
Rate limiting using slowapi.
Protects the login endpoint from password guessing.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.settings import settings
from shared.config.logging import get_logger

logger = get_logger(__name__)

# Limiter keyed by client IP
limiter = Limiter(key_func=get_remote_address)

LOGIN_RATE_LIMIT = settings.login_rate_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handler for rate limit exceeded errors.
    Returns the same `{message}` error shape as every other API error.
    """
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Try again later.",
            "retryAfter": exc.detail,
        },
        headers={"Retry-After": str(exc.detail)},
    )
