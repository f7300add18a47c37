"""
Password hashing utilities using bcrypt.

Passwords are always stored as salted bcrypt hashes; plaintext
comparison is never supported.
"""

import bcrypt

from shared.config.logging import get_logger

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a password using bcrypt.

    Example:
        hashed = hash_password("mypassword123")
        # Returns something like: $2b$12$...
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Non-bcrypt values (e.g. legacy plaintext rows) never match.
    """
    if not hashed_password.startswith(BCRYPT_PREFIXES):
        logger.warning(
            "SECURITY: login attempted against a non-bcrypt password hash; "
            "the account must be migrated"
        )
        return False

    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
