"""
Authentication router.
Staff log in with username and password and receive a session cookie.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from rest_api.services.domain import StaffService
from shared.config.logging import rest_api_logger as logger, mask_username
from shared.infrastructure.db import get_db
from shared.security.auth import (
    clear_session_cookie,
    current_user_context,
    set_session_cookie,
    sign_session_token,
)
from shared.security.rate_limit import LOGIN_RATE_LIMIT, limiter
from shared.utils.exceptions import UnauthorizedError
from shared.utils.schemas import CurrentUser, LoginRequest, RegisterRequest, UserOutput


router = APIRouter(prefix="/api", tags=["auth"])


def _start_session(response: Response, user) -> None:
    token = sign_session_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        username=user.username,
    )
    set_session_cookie(response, token)


@router.post("/register", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
def register(response: Response, body: RegisterRequest, db: Session = Depends(get_db)) -> UserOutput:
    """Create a staff account and log it in."""
    user = StaffService(db).register(body)
    _start_session(response, user)
    return UserOutput.model_validate(user)


@router.post("/login", response_model=UserOutput)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, response: Response, body: LoginRequest, db: Session = Depends(get_db)) -> UserOutput:
    """
    Authenticate a staff member and set the session cookie.

    Rate limited per client IP to slow down password guessing.
    """
    user = StaffService(db).authenticate(body.username, body.password)
    if user is None:
        logger.warning("LOGIN_FAILED", username=mask_username(body.username))
        raise UnauthorizedError("Invalid username or password")

    _start_session(response, user)
    logger.info("LOGIN_SUCCESS", username=mask_username(user.username), user_id=user.id, role=user.role)
    return UserOutput.model_validate(user)


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Clear the session cookie. Succeeds even without a session."""
    clear_session_cookie(response)
    return {"message": "Logged out"}


@router.get("/user", response_model=CurrentUser)
def current_user(
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    The logged-in user.
    A session whose user was deleted or disabled is treated as logged out.
    """
    user = StaffService(db).get_user(int(ctx["sub"]))
    if user is None or not user.is_active:
        raise UnauthorizedError("Session user no longer exists")
    return CurrentUser.model_validate(user)
