"""
Shared module for common utilities of the REST API.

STRUCTURE:
- shared.security: Authentication, tenant isolation, password hashing
  - auth.py: JWT issuing/verification, current_user_context, require_staff
  - tenant_context.py: Request-scoped tenant, tenant_guarded decorator
  - password.py: Bcrypt hashing
  - rate_limit.py: Login and refresh rate limiting

- shared.infrastructure: Database and request correlation
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging, auth audit events
  - constants.py: Roles, actor kinds, validation limits

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_access_token, current_user_context
    from shared.security.tenant_context import tenant_guarded
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, ActorKind
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
