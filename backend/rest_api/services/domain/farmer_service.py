"""
Farmer Service - self-registration of cooperative members.

Usage:
    from rest_api.services.domain import FarmerService

    farmer = FarmerService(db).register(request)
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import Farmer
from rest_api.repositories import DairyCenterRepository, FarmerRepository
from shared.config.constants import ActorKind
from shared.config.logging import audit_auth_event, get_logger
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password
from shared.security.tenant_context import tenant_guarded, tenant_scope
from shared.utils.exceptions import DuplicateEntityError, TenantNotFoundError
from shared.utils.schemas import FarmerOutput, FarmerRegistrationRequest

logger = get_logger(__name__)


class FarmerService:
    """
    Service for farmer registration.

    Business rules:
    - A farmer is unique by (dairy center, phone, member code); the same phone
      may hold several member codes in one center
    - The dairy center must exist
    """

    def __init__(self, db: Session):
        self._db = db
        self._centers = DairyCenterRepository(db)
        self._farmers = FarmerRepository(db)

    def register(self, data: FarmerRegistrationRequest) -> FarmerOutput:
        """
        Register a farmer under a dairy center.

        Raises:
            TenantNotFoundError: Unknown dairy center.
            DuplicateEntityError: The (center, phone, member code) triple exists.
        """
        with tenant_scope(data.tenant_id):
            return self._register(data.tenant_id, data)

    @tenant_guarded
    def _register(self, tenant_id: int, data: FarmerRegistrationRequest) -> FarmerOutput:
        center = self._centers.find_by_id(tenant_id)
        if center is None:
            raise TenantNotFoundError(tenant_id)

        identifier = f"{data.phone}/{data.member_code}"
        if self._farmers.exists_by_key(tenant_id, data.phone, data.member_code):
            raise DuplicateEntityError("Farmer", identifier, tenant_id=tenant_id)

        farmer = Farmer(
            tenant_id=tenant_id,
            name=data.name,
            phone=data.phone,
            member_code=data.member_code,
            password_hash=hash_password(data.password),
        )
        self._farmers.add(farmer)
        try:
            safe_commit(self._db)
        except IntegrityError:
            raise DuplicateEntityError("Farmer", identifier, tenant_id=tenant_id)
        self._farmers.refresh(farmer)

        audit_auth_event(
            "FARMER_REGISTERED",
            actor=ActorKind.FARMER,
            phone=data.phone,
            tenant_id=tenant_id,
            farmer_id=farmer.id,
        )
        return FarmerOutput(
            id=farmer.id,
            name=farmer.name,
            phone=farmer.phone,
            member_code=farmer.member_code,
            dairy_center_id=center.id,
            dairy_center_name=center.name,
            created_at=farmer.created_at,
        )
