"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    UnauthorizedError,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    InvalidStateError,
    DatabaseError,
)
from shared.utils.validators import validate_image_url, sanitize_text
from shared.utils.schemas import ErrorResponse, quantize_money

__all__ = [
    # exceptions
    "AppException",
    "UnauthorizedError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "InvalidStateError",
    "DatabaseError",
    # validators
    "validate_image_url",
    "sanitize_text",
    # schemas
    "ErrorResponse",
    "quantize_money",
]
