"""
Staff Service - dairy staff accounts.

Handles staff creation (public, tenant named in the body) and the
tenant-scoped reads that require a staff token.

Usage:
    from rest_api.services.domain import StaffService

    service = StaffService(db)
    staff = service.create(request)
    staff = service.get_by_id(staff_id, tenant_id)
    page, total = service.list_by_tenant(tenant_id, limit=10, offset=0)
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import DairyCenter, DairyStaff
from rest_api.repositories import DairyCenterRepository, StaffRepository
from shared.config.constants import ActorKind
from shared.config.logging import audit_auth_event, get_logger
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password
from shared.security.tenant_context import tenant_guarded, tenant_scope
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, TenantNotFoundError
from shared.utils.schemas import StaffCreateRequest, StaffOutput

logger = get_logger(__name__)


class StaffService:
    """
    Service for dairy staff management.

    Business rules:
    - Staff belong to exactly one dairy center
    - A phone number identifies at most one staff member per dairy center
    - Staff can only see staff of their own dairy center
    """

    def __init__(self, db: Session):
        self._db = db
        self._centers = DairyCenterRepository(db)
        self._staff = StaffRepository(db)
        self._entity_name = "Staff"

    # =========================================================================
    # Query Methods
    # =========================================================================

    @tenant_guarded
    def get_by_id(self, staff_id: int, tenant_id: int) -> StaffOutput:
        """
        Get a staff member of the tenant.

        Raises:
            NotFoundError: Unknown id, deactivated, or another tenant's staff.
        """
        staff = self._staff.find_by_id(staff_id, tenant_id)
        if staff is None:
            raise NotFoundError(self._entity_name, staff_id, tenant_id=tenant_id)
        return self._to_output(staff, staff.dairy_center)

    @tenant_guarded
    def list_by_tenant(
        self,
        tenant_id: int,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[StaffOutput], int]:
        """
        List active staff of the tenant in id order, with the total count.

        Raises:
            TenantNotFoundError: Unknown dairy center.
        """
        center = self._centers.find_by_id(tenant_id)
        if center is None:
            raise TenantNotFoundError(tenant_id)
        staff = self._staff.find_page(tenant_id, limit=limit, offset=offset)
        return [self._to_output(s, center) for s in staff], self._staff.count(tenant_id)

    # =========================================================================
    # Write Methods
    # =========================================================================

    def create(self, data: StaffCreateRequest) -> StaffOutput:
        """
        Create a staff account.

        Raises:
            TenantNotFoundError: Unknown dairy center.
            DuplicateEntityError: The phone is already staff of this center.
        """
        with tenant_scope(data.tenant_id):
            return self._create(data.tenant_id, data)

    @tenant_guarded
    def _create(self, tenant_id: int, data: StaffCreateRequest) -> StaffOutput:
        center = self._centers.find_by_id(tenant_id)
        if center is None:
            raise TenantNotFoundError(tenant_id)

        if self._staff.exists_by_phone(tenant_id, data.phone):
            raise DuplicateEntityError(self._entity_name, data.phone, tenant_id=tenant_id)

        staff = DairyStaff(
            tenant_id=tenant_id,
            name=data.name,
            phone=data.phone,
            password_hash=hash_password(data.password),
        )
        self._staff.add(staff)
        try:
            safe_commit(self._db)
        except IntegrityError:
            raise DuplicateEntityError(self._entity_name, data.phone, tenant_id=tenant_id)
        self._staff.refresh(staff)

        audit_auth_event(
            "STAFF_CREATED",
            actor=ActorKind.STAFF,
            phone=data.phone,
            tenant_id=tenant_id,
            staff_id=staff.id,
        )
        return self._to_output(staff, center)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    @staticmethod
    def _to_output(staff: DairyStaff, center: DairyCenter) -> StaffOutput:
        return StaffOutput(
            id=staff.id,
            name=staff.name,
            phone=staff.phone,
            dairy_center_id=center.id,
            dairy_center_name=center.name,
            created_at=staff.created_at,
            updated_at=staff.updated_at,
        )
