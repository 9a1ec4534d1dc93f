"""
Credential Service - resolves a login into a verified farmer or staff identity.

Two principal kinds share no identity table:
- farmer: keyed by (tenant, phone, member code)
- staff: keyed by (tenant, phone)

A login that carries a member code is a farmer login; otherwise it is a staff
login. Every mismatch (unknown tenant, phone, member code or wrong password)
ends in the same InvalidCredentialsError, and a miss still spends one bcrypt
check so the response time does not reveal which part was wrong.

Usage:
    from rest_api.services.domain import CredentialService

    identity = CredentialService(db).resolve(login_request)
    access_token = issue_access_token(identity)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, NoReturn, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import DairyCenter, DairyStaff, Farmer
from rest_api.repositories import (
    DairyCenterRepository,
    FarmerRepository,
    RevokedTokenRepository,
    StaffRepository,
)
from shared.config.constants import ActorKind
from shared.config.logging import audit_auth_event, get_logger, mask_jti, mask_phone
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password, needs_rehash, verify_password
from shared.security.tenant_context import tenant_guarded, tenant_scope
from shared.utils.exceptions import InvalidCredentialsError, TokenInvalidError, ValidationError
from shared.utils.schemas import LoginRequest

logger = get_logger(__name__)


# =============================================================================
# Verified identities
# =============================================================================


@dataclass(frozen=True, slots=True)
class FarmerIdentity:
    principal_id: int
    phone: str
    name: str
    tenant_id: int
    tenant_name: str
    member_code: str
    actor: Literal["farmer"] = field(default=ActorKind.FARMER, init=False)


@dataclass(frozen=True, slots=True)
class StaffIdentity:
    principal_id: int
    phone: str
    name: str
    tenant_id: int
    tenant_name: str
    actor: Literal["staff"] = field(default=ActorKind.STAFF, init=False)

    @property
    def member_code(self) -> None:
        return None


VerifiedIdentity = Union[FarmerIdentity, StaffIdentity]


def _identity_for(principal: Farmer | DairyStaff, center: DairyCenter) -> VerifiedIdentity:
    if isinstance(principal, Farmer):
        return FarmerIdentity(
            principal_id=principal.id,
            phone=principal.phone,
            name=principal.name,
            tenant_id=center.id,
            tenant_name=center.name,
            member_code=principal.member_code,
        )
    return StaffIdentity(
        principal_id=principal.id,
        phone=principal.phone,
        name=principal.name,
        tenant_id=center.id,
        tenant_name=center.name,
    )


# =============================================================================
# Service
# =============================================================================


class CredentialService:
    """
    Authenticates farmers and staff and re-resolves them from refresh tokens.

    Business rules:
    - Login never reveals whether the tenant, phone or member code exists
    - Inactive principals cannot log in
    - Hashes made with fewer bcrypt rounds than configured are upgraded on login
    """

    def __init__(self, db: Session):
        self._db = db
        self._centers = DairyCenterRepository(db)
        self._farmers = FarmerRepository(db)
        self._staff = StaffRepository(db)
        self._revoked = RevokedTokenRepository(db)

    def resolve(
        self,
        login: LoginRequest,
        *,
        actor: str | None = None,
        ip_address: str | None = None,
    ) -> VerifiedIdentity:
        """
        Authenticate a login request.

        Args:
            login: Phone, password, optional member code and tenant id.
            actor: Force the actor kind. ActorKind.STAFF ignores any member
                code; ActorKind.FARMER requires one. None infers it from the
                presence of a member code.
            ip_address: Client address for the audit log.

        Raises:
            ValidationError: Farmer login without a member code.
            InvalidCredentialsError: Any mismatch.
        """
        member_code = login.member_code
        if actor == ActorKind.STAFF:
            member_code = None
        elif actor == ActorKind.FARMER and member_code is None:
            raise ValidationError("member_code is required for farmer login")

        with tenant_scope(login.tenant_id):
            return self._authenticate(
                login.tenant_id,
                login.phone,
                login.password,
                member_code,
                ip_address=ip_address,
            )

    def resolve_from_claims(
        self,
        claims: dict[str, Any],
        *,
        ip_address: str | None = None,
    ) -> VerifiedIdentity:
        """
        Re-resolve the principal named by verified refresh-token claims.

        Raises:
            InvalidCredentialsError: The principal or its tenant no longer
                exists, or has been deactivated.
        """
        with tenant_scope(claims["tenant_id"]):
            return self._lookup_current(
                claims["tenant_id"],
                claims["actor"],
                claims["sub"],
                claims.get("member_code"),
                ip_address=ip_address,
            )

    def redeem_refresh_token(
        self,
        claims: dict[str, Any],
        *,
        ip_address: str | None = None,
    ) -> VerifiedIdentity:
        """
        Exchange verified refresh-token claims for the current identity and
        revoke that refresh token, so each one can be used once.

        Raises:
            TokenInvalidError: The token was already exchanged or has no jti.
            InvalidCredentialsError: See resolve_from_claims.
        """
        jti = claims.get("jti")
        if not jti or self._revoked.is_revoked(jti):
            self._reject_reused(claims, ip_address)

        identity = self.resolve_from_claims(claims, ip_address=ip_address)

        now = datetime.now(timezone.utc)
        self._revoked.purge_expired(now)
        self._revoked.revoke(jti, datetime.fromtimestamp(claims["exp"], timezone.utc))
        try:
            safe_commit(self._db)
        except IntegrityError:
            # Another request exchanged the same token first
            self._reject_reused(claims, ip_address)
        return identity

    def _reject_reused(self, claims: dict[str, Any], ip_address: str | None) -> NoReturn:
        audit_auth_event(
            "TOKEN_REFRESH",
            actor=claims.get("actor"),
            phone=claims.get("sub"),
            tenant_id=claims.get("tenant_id"),
            success=False,
            reason="refresh token already used",
            ip_address=ip_address,
        )
        raise TokenInvalidError(
            "Refresh token has been revoked", jti=mask_jti(claims.get("jti"))
        )

    # =========================================================================
    # Guarded lookups
    # =========================================================================

    def _find_principal(
        self, tenant_id: int, phone: str, member_code: str | None
    ) -> Farmer | DairyStaff | None:
        if member_code is not None:
            return self._farmers.find_by_key(tenant_id, phone, member_code)
        return self._staff.find_by_phone(tenant_id, phone)

    @tenant_guarded
    def _authenticate(
        self,
        tenant_id: int,
        phone: str,
        password: str,
        member_code: str | None,
        *,
        ip_address: str | None = None,
    ) -> VerifiedIdentity:
        actor = ActorKind.FARMER if member_code is not None else ActorKind.STAFF
        center = self._centers.find_by_id(tenant_id)
        principal = self._find_principal(tenant_id, phone, member_code) if center else None

        password_hash = principal.password_hash if principal is not None else None
        if not verify_password(password, password_hash):
            if center is None:
                reason = "unknown dairy center"
            elif principal is None:
                reason = f"unknown {actor}"
            else:
                reason = "wrong password"
            audit_auth_event(
                "LOGIN",
                actor=actor,
                phone=phone,
                tenant_id=tenant_id,
                success=False,
                reason=reason,
                ip_address=ip_address,
            )
            raise InvalidCredentialsError(reason, actor=actor, tenant_id=tenant_id)

        if needs_rehash(principal.password_hash):
            principal.password_hash = hash_password(password)
            safe_commit(self._db)
            logger.info("Password hash upgraded", actor=actor, principal_id=principal.id)

        audit_auth_event(
            "LOGIN",
            actor=actor,
            phone=phone,
            tenant_id=tenant_id,
            success=True,
            ip_address=ip_address,
        )
        return _identity_for(principal, center)

    @tenant_guarded
    def _lookup_current(
        self,
        tenant_id: int,
        actor: str,
        phone: str,
        member_code: str | None,
        *,
        ip_address: str | None = None,
    ) -> VerifiedIdentity:
        center = self._centers.find_by_id(tenant_id)
        principal = None
        if center is not None:
            if actor == ActorKind.FARMER:
                principal = self._farmers.find_by_key(tenant_id, phone, member_code or "")
            else:
                principal = self._staff.find_by_phone(tenant_id, phone)

        if principal is None:
            audit_auth_event(
                "TOKEN_REFRESH",
                actor=actor,
                phone=phone,
                tenant_id=tenant_id,
                success=False,
                reason="principal no longer exists",
                ip_address=ip_address,
            )
            raise InvalidCredentialsError(
                "principal no longer exists",
                actor=actor,
                phone=mask_phone(phone),
                tenant_id=tenant_id,
            )

        audit_auth_event(
            "TOKEN_REFRESH",
            actor=actor,
            phone=phone,
            tenant_id=tenant_id,
            success=True,
            ip_address=ip_address,
        )
        return _identity_for(principal, center)
