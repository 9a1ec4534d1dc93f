"""
Token issuing and verification.

Access tokens carry the full identity (subject phone, tenant, role, actor);
refresh tokens carry only what is needed to re-resolve the principal. Every
token has a `type` claim and each verifier accepts only its own type, so a
refresh token can never authorize a data request and an access token can
never be exchanged for new tokens.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator
from typing import Any, Protocol

import jwt
from fastapi import Depends, Header

from shared.config.constants import ROLE_BY_ACTOR, ActorKind, TokenType
from shared.config.logging import get_logger, mask_jti
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from shared.security.tenant_context import clear_current_tenant, set_current_tenant
from shared.utils.exceptions import (
    InsufficientRoleError,
    TokenExpiredError,
    TokenInvalidError,
)

logger = get_logger(__name__)

# Claims every token must carry, beyond the registered ones PyJWT enforces
_BASE_REQUIRED_CLAIMS = ("sub", "tenant_id", "type", "actor")


class TokenSubject(Protocol):
    """What a token is minted for: any verified farmer or staff identity."""

    actor: str
    phone: str
    tenant_id: int

    @property
    def member_code(self) -> str | None: ...


# =============================================================================
# Signing
# =============================================================================


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = TokenType.ACCESS,
) -> str:
    """
    Sign a JWT with the given payload.

    Adds iss, aud, iat, exp, type and a unique jti.

    Args:
        payload: Identity claims (sub, tenant_id, actor, ...).
        ttl_seconds: Token lifetime in seconds. Defaults to the configured
            lifetime for the token type.
        token_type: TokenType.ACCESS or TokenType.REFRESH.
    """
    if ttl_seconds is None:
        if token_type == TokenType.REFRESH:
            ttl_seconds = settings.jwt_refresh_token_expire_days * 24 * 60 * 60
        else:
            ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm=settings.jwt_algorithm)


def _identity_claims(subject: TokenSubject) -> dict[str, Any]:
    claims: dict[str, Any] = {
        "sub": subject.phone,
        "tenant_id": subject.tenant_id,
        "actor": subject.actor,
    }
    if subject.actor == ActorKind.FARMER:
        claims["member_code"] = subject.member_code
    return claims


def issue_access_token(subject: TokenSubject, ttl_seconds: int | None = None) -> str:
    """Mint a short-lived access token with the full claim set."""
    claims = _identity_claims(subject)
    claims["roles"] = [ROLE_BY_ACTOR[subject.actor]]
    return sign_jwt(claims, ttl_seconds=ttl_seconds, token_type=TokenType.ACCESS)


def issue_refresh_token(subject: TokenSubject, ttl_seconds: int | None = None) -> str:
    """Mint a long-lived refresh token carrying only identity keys."""
    return sign_jwt(
        _identity_claims(subject),
        ttl_seconds=ttl_seconds,
        token_type=TokenType.REFRESH,
    )


# =============================================================================
# Verification
# =============================================================================


def verify_jwt(token: str, expected_type: str) -> dict[str, Any]:
    """
    Verify and decode a JWT of the expected class.

    Raises:
        TokenExpiredError: The token is past its expiry.
        TokenInvalidError: Bad signature, malformed token, missing or
            malformed claims, or a token of the other class.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[settings.jwt_algorithm],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
            options={"require": ["exp", "iat", "iss", "aud"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(expected_type=expected_type)
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message to the client
        raise TokenInvalidError(error=str(e), expected_type=expected_type)

    for claim in _BASE_REQUIRED_CLAIMS:
        if claim not in payload:
            raise TokenInvalidError(f"Invalid token: missing {claim} claim")

    if payload["type"] != expected_type:
        raise TokenInvalidError(
            f"Invalid token type. Expected {expected_type} token.",
            jti=mask_jti(payload.get("jti")),
            presented_type=payload["type"],
        )

    if not isinstance(payload["sub"], str) or not payload["sub"]:
        raise TokenInvalidError("Invalid token: malformed subject claim")

    # bool is an int subclass; a tenant id is never a bool
    tenant_id = payload["tenant_id"]
    if not isinstance(tenant_id, int) or isinstance(tenant_id, bool):
        raise TokenInvalidError("Invalid token: malformed tenant_id claim")

    actor = payload["actor"]
    if actor not in ActorKind.ALL:
        raise TokenInvalidError("Invalid token: malformed actor claim")

    if actor == ActorKind.FARMER and not payload.get("member_code"):
        raise TokenInvalidError("Invalid token: missing member_code claim")

    if expected_type == TokenType.ACCESS:
        roles = payload.get("roles")
        if not isinstance(roles, list) or not roles:
            raise TokenInvalidError("Invalid token: missing roles claim")

    return payload


def verify_access_token(token: str) -> dict[str, Any]:
    """Verify an access token; refresh tokens are rejected."""
    return verify_jwt(token, TokenType.ACCESS)


def verify_refresh_token(token: str) -> dict[str, Any]:
    """Verify a refresh token; access tokens are rejected."""
    return verify_jwt(token, TokenType.REFRESH)


# =============================================================================
# FastAPI dependencies
# =============================================================================


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        TokenInvalidError: If header is missing or malformed.
    """
    if not authorization:
        raise TokenInvalidError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise TokenInvalidError("Invalid Authorization header format. Expected: Bearer <token>")
    return token.strip()


async def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AsyncIterator[dict[str, Any]]:
    """
    FastAPI dependency: verify the access token and scope the request to its tenant.

    The tenant context is set before the endpoint runs and cleared when the
    request finishes. This is an async dependency so the context it sets is
    the one the endpoint's threadpool worker copies.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx: dict = Depends(current_user_context)):
            tenant_id = ctx["tenant_id"]
    """
    payload = verify_access_token(get_bearer_token(authorization))
    set_current_tenant(payload["tenant_id"])
    try:
        yield payload
    finally:
        clear_current_tenant()


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the token carries at least one of the allowed roles.

    Raises:
        InsufficientRoleError: If it does not.
    """
    user_roles = set(ctx.get("roles", []))
    if not user_roles.intersection(allowed):
        raise InsufficientRoleError(allowed, actor=ctx.get("actor"), tenant_id=ctx.get("tenant_id"))


def require_staff(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    """Dependency that requires a dairy staff access token."""
    require_roles(ctx, [ROLE_BY_ACTOR[ActorKind.STAFF]])
    return ctx
