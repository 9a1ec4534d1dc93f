"""
Password hashing utilities using bcrypt.

Farmer and staff passwords are stored only as bcrypt hashes.
"""

import bcrypt

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

BCRYPT_ROUNDS = settings.bcrypt_rounds
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# Checked against when no principal matched, so a miss costs the same
# bcrypt work as a wrong password.
_DUMMY_HASH = bcrypt.hashpw(b"digital-dairy-dummy", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Returns:
        Hashed password string (includes salt and algorithm info), e.g. "$2b$12$...".
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password against its hash.

    A missing hash still spends one bcrypt check and returns False. Non-bcrypt
    hashes are rejected outright.
    """
    if hashed_password is None:
        bcrypt.checkpw(plain_password.encode("utf-8"), _DUMMY_HASH.encode("utf-8"))
        return False

    if not hashed_password.startswith(_BCRYPT_PREFIXES):
        logger.warning("SECURITY: non-bcrypt password hash found in credential store")
        return False

    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def needs_rehash(hashed_password: str) -> bool:
    """
    Whether a stored hash should be replaced after a successful login.

    True for non-bcrypt hashes and for bcrypt hashes made with fewer rounds
    than BCRYPT_ROUNDS.
    """
    if not hashed_password.startswith(_BCRYPT_PREFIXES):
        return True
    try:
        rounds = int(hashed_password.split("$")[2])
    except (IndexError, ValueError):
        return True
    return rounds < BCRYPT_ROUNDS
