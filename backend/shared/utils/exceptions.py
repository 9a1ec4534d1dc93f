"""
Centralized HTTP exceptions for consistent error handling.

Every exception logs itself with structured context when raised, so routers
and services only need to raise.

Usage:
    from shared.utils.exceptions import NotFoundError, TenantNotFoundError

    raise NotFoundError("Staff", staff_id)
    raise TenantNotFoundError(tenant_id)
    raise CsvStructuralError("CSV file is empty")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 Unauthorized Errors
# =============================================================================


class AuthenticationError(AppException):
    """Authentication failed (401). Always carries a Bearer challenge."""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class InvalidCredentialsError(AuthenticationError):
    """
    Login mismatch of any kind.

    Unknown tenant, unknown phone, wrong member code and wrong password all
    produce this same response; the real reason only goes to the log.
    """

    MESSAGE = "Invalid credentials"

    def __init__(self, reason: str | None = None, **log_context: Any):
        super().__init__(self.MESSAGE, reason=reason, **log_context)


class TokenExpiredError(AuthenticationError):
    """Token is past its expiry."""

    def __init__(self, **log_context: Any):
        super().__init__("Token has expired", **log_context)


class TokenInvalidError(AuthenticationError):
    """Bad signature, malformed token, missing claim or wrong token class."""

    def __init__(self, detail: str = "Invalid token", **log_context: Any):
        super().__init__(detail, **log_context)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Staff", 123)
        raise NotFoundError("Staff", staff_id, tenant_id=tenant_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class TenantNotFoundError(NotFoundError):
    """Referenced dairy center does not exist."""

    def __init__(self, tenant_id: int | None = None, **log_context: Any):
        super().__init__("Dairy center", tenant_id, **log_context)


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("upload to another dairy center")
        raise ForbiddenError("read records of another member", member_code=code)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not authorized to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class TenantContextMissingError(ForbiddenError):
    """A tenant-scoped operation was attempted with no tenant in context."""

    def __init__(self, operation: str | None = None, **log_context: Any):
        super().__init__(
            "perform a tenant-scoped operation without a tenant",
            operation=operation,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """Token does not carry the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(required_roles)
        super().__init__(
            f"perform this action (requires role: {roles_str})",
            required_roles=required_roles,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Uploaded file is not a CSV")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class DuplicateEntityError(ValidationError):
    """Entity already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} '{identifier}' already exists"
        else:
            detail = f"{entity} already exists"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class CsvStructuralError(ValidationError):
    """
    The upload as a whole cannot be processed: empty, unreadable, or no data
    rows. Nothing is persisted when this is raised.
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(detail, **log_context)


class RowDecodeError(ValueError):
    """
    A single CSV row could not be decoded.

    Internal to the CSV decoder: it is converted into a row failure value and
    never reaches the HTTP layer.
    """


# =============================================================================
# 413 / 500 Errors
# =============================================================================


class PayloadTooLargeError(AppException):
    """Uploaded file exceeds the configured size limit (413)."""

    def __init__(self, limit_mb: int, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {limit_mb} MB",
            log_level="warning",
            limit_mb=limit_mb,
            **log_context,
        )


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to persist collection records", tenant_id=3)
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error during {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
