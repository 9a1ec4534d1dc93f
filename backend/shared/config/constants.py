"""
Centralized constants for the backend application.
Avoids magic strings and repeated constants.

Usage:
    from shared.config.constants import Roles, ActorKind, Limits

    if Roles.DAIRY_STAFF in ctx["roles"]:
        ...
"""

from typing import Final


# =============================================================================
# Roles and actor kinds
# =============================================================================


class Roles:
    """Role tags carried in access tokens."""

    FARMER: Final[str] = "FARMER"
    DAIRY_STAFF: Final[str] = "DAIRY_STAFF"

    ALL: Final[list[str]] = [FARMER, DAIRY_STAFF]


class ActorKind:
    """The two principal kinds that can authenticate."""

    FARMER: Final[str] = "farmer"
    STAFF: Final[str] = "staff"

    ALL: Final[tuple[str, ...]] = (FARMER, STAFF)


ROLE_BY_ACTOR: Final[dict[str, str]] = {
    ActorKind.FARMER: Roles.FARMER,
    ActorKind.STAFF: Roles.DAIRY_STAFF,
}


class TokenType:
    """Value of the `type` claim; access and refresh tokens are not interchangeable."""

    ACCESS: Final[str] = "access"
    REFRESH: Final[str] = "refresh"


# =============================================================================
# Validation limits
# =============================================================================


class Limits:
    """Validation limits."""

    # Names
    MIN_NAME_LENGTH: Final[int] = 2
    MAX_NAME_LENGTH: Final[int] = 100
    MAX_LOCATION_LENGTH: Final[int] = 200
    MAX_CONTACT_LENGTH: Final[int] = 50

    # Credentials
    MIN_PASSWORD_LENGTH: Final[int] = 6
    MAX_PASSWORD_LENGTH: Final[int] = 72  # bcrypt input limit
    MAX_MEMBER_CODE_LENGTH: Final[int] = 50

    # Collection records
    MAX_REMARKS_LENGTH: Final[int] = 500

    # Pagination defaults (page is 0-indexed)
    DEFAULT_PAGE_SIZE: Final[int] = 10
    MAX_PAGE_SIZE: Final[int] = 200


# Nepali mobile numbers as accepted at registration
PHONE_PATTERN: Final[str] = r"^98\d{8}$"

# Farmer name used when a record's member code has no registered farmer
UNKNOWN_FARMER_NAME: Final[str] = "Unknown"
