"""
Staff Service: tenants, users and credential checks.

Usage:
    from rest_api.services.domain import StaffService

    service = StaffService(db)
    user = service.authenticate("admin", "password")
    staff = service.list_users(tenant_id)
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import Tenant, User
from shared.config.logging import auth_logger as logger, mask_username
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password, verify_password
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.schemas import RegisterRequest, TenantOutput, UserOutput


class StaffService:
    """
    Service for staff (user) management.

    Business rules:
    - Usernames are unique across all tenants
    - Passwords are stored as bcrypt hashes only
    - Disabled users cannot log in
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Query Methods
    # =========================================================================

    def get_tenant(self, tenant_id: int) -> TenantOutput:
        tenant = self._db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return TenantOutput.model_validate(tenant)

    def list_users(self, tenant_id: int) -> list[UserOutput]:
        users = self._db.scalars(
            select(User).where(User.tenant_id == tenant_id).order_by(User.id)
        ).all()
        return [UserOutput.model_validate(u) for u in users]

    def get_user(self, user_id: int) -> User | None:
        return self._db.get(User, user_id)

    def find_by_username(self, username: str) -> User | None:
        return self._db.scalar(select(User).where(User.username == username))

    # =========================================================================
    # Command Methods
    # =========================================================================

    def register(self, body: RegisterRequest) -> User:
        """
        Create a user account.

        Raises:
            ValidationError: If the username is taken or the tenant is unknown.
        """
        if self.find_by_username(body.username) is not None:
            raise ValidationError("Username already exists", username=mask_username(body.username))

        if self._db.get(Tenant, body.tenant_id) is None:
            raise ValidationError(f"Tenant {body.tenant_id} not found", field="tenantId")

        user = User(
            tenant_id=body.tenant_id,
            username=body.username,
            password=hash_password(body.password),
            full_name=body.full_name,
            role=body.role,
            is_active=True,
        )
        self._db.add(user)
        try:
            safe_commit(self._db)
        except IntegrityError:
            # Lost a race with a concurrent registration
            raise ValidationError("Username already exists", username=mask_username(body.username))

        logger.info(
            "User registered",
            user_id=user.id,
            tenant_id=user.tenant_id,
            username=mask_username(user.username),
            role=user.role,
        )
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when the credentials are valid, else None."""
        user = self.find_by_username(username)
        if user is None or not user.is_active:
            logger.info("Login failed", username=mask_username(username), reason="unknown_or_inactive")
            return None
        if not verify_password(password, user.password):
            logger.info("Login failed", username=mask_username(username), reason="bad_password")
            return None
        return user
