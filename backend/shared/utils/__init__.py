"""
Utilities module: Exceptions and shared schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    DuplicateEntityError,
    TenantNotFoundError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenInvalidError,
    TenantContextMissingError,
    CsvStructuralError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "DuplicateEntityError",
    "TenantNotFoundError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TenantContextMissingError",
    "CsvStructuralError",
]
