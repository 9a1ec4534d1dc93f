"""
Authentication router.
Handles login, token refresh and the current identity.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from rest_api.services.domain import CredentialService, VerifiedIdentity
from shared.config.constants import ActorKind
from shared.config.logging import auth_logger as logger, mask_phone
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import (
    current_user_context,
    issue_access_token,
    issue_refresh_token,
    verify_refresh_token,
)
from shared.security.rate_limit import limiter
from shared.utils.exceptions import TokenInvalidError
from shared.utils.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenRefreshResponse,
    UserInfo,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])

REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/api/auth"


# =============================================================================
# HttpOnly refresh cookie
# =============================================================================


def set_refresh_token_cookie(response: Response, refresh_token: str) -> None:
    """
    Set the refresh token as an HttpOnly cookie.

    - httponly: not readable from JavaScript
    - secure: HTTPS only (configurable for dev)
    - path: only sent to /api/auth endpoints
    - max_age: matches the refresh token lifetime
    """
    max_age_seconds = settings.jwt_refresh_token_expire_days * 24 * 60 * 60

    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=max_age_seconds,
        path=REFRESH_COOKIE_PATH,
        domain=settings.cookie_domain or None,
    )


def issue_login_response(response: Response, identity: VerifiedIdentity) -> LoginResponse:
    """Mint both tokens for a verified identity and build the login body."""
    access_token = issue_access_token(identity)
    refresh_token = issue_refresh_token(identity)
    set_refresh_token_cookie(response, refresh_token)

    logger.info(
        "LOGIN_SUCCESS",
        actor=identity.actor,
        phone=mask_phone(identity.phone),
        tenant_id=identity.tenant_id,
    )
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        username=identity.phone,
        actor=identity.actor,
        dairy_center_id=identity.tenant_id,
        dairy_center_name=identity.tenant_name,
        member_code=identity.member_code,
        message="Login successful",
    )


def login_as(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session,
    actor: str | None = None,
) -> LoginResponse:
    """Shared body of the generic, farmer and staff login endpoints."""
    identity = CredentialService(db).resolve(
        body,
        actor=actor,
        ip_address=get_remote_address(request),
    )
    return issue_login_response(response, identity)


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate a farmer or a staff member and return access + refresh tokens.

    A member code makes it a farmer login; without one it is a staff login.
    Every mismatch returns the same 401 "Invalid credentials".
    """
    return login_as(request, response, body, db)


@router.post("/refresh", response_model=TokenRefreshResponse)
@limiter.limit(settings.refresh_rate_limit)
def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    refresh_token_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME),
    db: Session = Depends(get_db),
) -> TokenRefreshResponse:
    """
    Exchange a refresh token for a new access token and a rotated refresh token.

    Reads the refresh token from the HttpOnly cookie first, then the body.
    The principal is re-resolved, so a removed or deactivated account cannot
    refresh. The presented refresh token is revoked; replaying it is 401.
    """
    token_value = refresh_token_cookie
    if not token_value and body and body.refresh_token:
        token_value = body.refresh_token

    if not token_value:
        raise TokenInvalidError("Refresh token not provided")

    claims = verify_refresh_token(token_value)
    identity = CredentialService(db).redeem_refresh_token(
        claims, ip_address=get_remote_address(request)
    )

    access_token = issue_access_token(identity)
    new_refresh_token = issue_refresh_token(identity)
    set_refresh_token_cookie(response, new_refresh_token)

    logger.info("Token refresh successful", actor=identity.actor, tenant_id=identity.tenant_id)

    return TokenRefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh_token,
        token_type="Bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=UserInfo)
def get_current_user(ctx: dict = Depends(current_user_context)) -> UserInfo:
    """Identity carried by the current access token."""
    return UserInfo(
        username=ctx["sub"],
        actor=ctx["actor"],
        dairy_center_id=ctx["tenant_id"],
        roles=ctx["roles"],
        member_code=ctx.get("member_code") if ctx["actor"] == ActorKind.FARMER else None,
    )
