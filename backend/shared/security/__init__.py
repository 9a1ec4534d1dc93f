"""
Security module: tokens, tenant context, password hashing, rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    issue_access_token,
    issue_refresh_token,
    verify_jwt,
    verify_access_token,
    verify_refresh_token,
    get_bearer_token,
    current_user_context,
    require_roles,
    require_staff,
)
from shared.security.password import hash_password, verify_password, needs_rehash
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from shared.security.tenant_context import (
    set_current_tenant,
    get_current_tenant,
    clear_current_tenant,
    require_current_tenant,
    tenant_scope,
    tenant_guarded,
)

__all__ = [
    # auth
    "sign_jwt",
    "issue_access_token",
    "issue_refresh_token",
    "verify_jwt",
    "verify_access_token",
    "verify_refresh_token",
    "get_bearer_token",
    "current_user_context",
    "require_roles",
    "require_staff",
    # password
    "hash_password",
    "verify_password",
    "needs_rehash",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
    # tenant context
    "set_current_tenant",
    "get_current_tenant",
    "clear_current_tenant",
    "require_current_tenant",
    "tenant_scope",
    "tenant_guarded",
]
