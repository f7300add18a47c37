"""
Shared module for common utilities across the REST API and the realtime gateway.

STRUCTURE:
- shared.security: Session cookies, password hashing, login rate limiting
  - auth.py: session JWT, current_user_context, require_tenant, require_roles
  - password.py: Bcrypt hashing
  - rate_limit.py: slowapi limiter
- shared.infrastructure: Database and request correlation
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware
- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, table/order/item statuses, limits
- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Image URL and free-text validation
  - schemas.py: Pydantic wire schemas (camelCase)

IMPORT EXAMPLES:
    from shared.security.auth import current_user_context, require_roles
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
