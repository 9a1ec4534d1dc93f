"""
Request-scoped tenant context and the guard for tenant-scoped operations.

The tenant is held in a ContextVar, so each request (and each threadpool
worker running a sync endpoint, which receives a copy of the request
context) sees only its own value.

Usage:
    from shared.security.tenant_context import tenant_guarded, tenant_scope

    class CollectionService:
        @tenant_guarded
        def list_by_month(self, tenant_id: int, month: str, year: str):
            ...

    with tenant_scope(body.tenant_id):
        identity = CredentialService(db).resolve(body)
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, TypeVar

from shared.config.logging import get_logger
from shared.utils.exceptions import ForbiddenError, TenantContextMissingError

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_current_tenant: ContextVar[int | None] = ContextVar("current_tenant", default=None)
# Nesting depth of guarded calls; only the outermost one clears the tenant
_guard_depth: ContextVar[int] = ContextVar("tenant_guard_depth", default=0)


def set_current_tenant(tenant_id: int) -> None:
    """Store the tenant for the current request."""
    if tenant_id is None:
        raise ValueError("tenant_id must not be None")
    _current_tenant.set(tenant_id)


def get_current_tenant() -> int | None:
    """Return the tenant of the current request, or None if absent."""
    return _current_tenant.get()


def clear_current_tenant() -> None:
    """Remove the tenant unconditionally."""
    _current_tenant.set(None)


def require_current_tenant() -> int:
    """Return the current tenant or fail with 403."""
    tenant_id = _current_tenant.get()
    if tenant_id is None:
        raise TenantContextMissingError()
    return tenant_id


@contextmanager
def tenant_scope(tenant_id: int) -> Iterator[int]:
    """Set the tenant for the duration of the block, clearing it on exit."""
    set_current_tenant(tenant_id)
    try:
        yield tenant_id
    finally:
        clear_current_tenant()


def _explicit_tenant_id(signature: inspect.Signature, args: tuple, kwargs: dict) -> Any:
    if "tenant_id" not in signature.parameters:
        return None
    bound = signature.bind_partial(*args, **kwargs)
    return bound.arguments.get("tenant_id")


def tenant_guarded(func: F) -> F:
    """
    Guard a tenant-scoped operation.

    - No tenant in context: the operation is not invoked, 403 is raised.
    - An explicit `tenant_id` argument that differs from the context: 403.
    - When the outermost guarded call returns or raises, the context is
      cleared so a later, differently scoped call in the same worker cannot
      pick up a stale tenant.
    """
    signature = inspect.signature(func)
    operation = func.__qualname__

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        current = _current_tenant.get()
        if current is None:
            raise TenantContextMissingError(operation)

        explicit = _explicit_tenant_id(signature, args, kwargs)
        if explicit is not None and explicit != current:
            raise ForbiddenError(
                "access another dairy center",
                operation=operation,
                context_tenant_id=current,
                requested_tenant_id=explicit,
            )

        depth = _guard_depth.get()
        _guard_depth.set(depth + 1)
        try:
            return func(*args, **kwargs)
        finally:
            _guard_depth.set(depth)
            if depth == 0:
                clear_current_tenant()

    return wrapper  # type: ignore[return-value]
