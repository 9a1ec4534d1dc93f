"""
Tenant Service - onboarding and listing of dairy centers.

Usage:
    from rest_api.services.domain import TenantService

    center = TenantService(db).onboard(request)
    centers, total = TenantService(db).list_page(limit=10, offset=0)
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import DairyCenter
from rest_api.repositories import DairyCenterRepository
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import DuplicateEntityError
from shared.utils.schemas import DairyOnboardRequest

logger = get_logger(__name__)


class TenantService:
    """
    Service for dairy center (tenant) management.

    Business rules:
    - Center names are unique regardless of case, including deactivated centers
    - Centers are never hard-deleted
    """

    def __init__(self, db: Session):
        self._db = db
        self._repo = DairyCenterRepository(db)
        self._entity_name = "Dairy center"

    def onboard(self, data: DairyOnboardRequest) -> DairyCenter:
        """
        Create a new dairy center.

        Raises:
            DuplicateEntityError: A center with the same name (any case) exists.
        """
        if self._repo.find_by_name(data.name) is not None:
            raise DuplicateEntityError(self._entity_name, data.name)

        center = DairyCenter(name=data.name, location=data.location, contact=data.contact)
        self._repo.add(center)
        try:
            safe_commit(self._db)
        except IntegrityError:
            # Lost the race against a concurrent onboarding with the same name
            raise DuplicateEntityError(self._entity_name, data.name)
        self._repo.refresh(center)

        logger.info("Dairy center onboarded", tenant_id=center.id, name=center.name)
        return center

    def list_page(self, *, limit: int, offset: int) -> tuple[Sequence[DairyCenter], int]:
        """Active dairy centers in id order, with the total count."""
        return self._repo.find_page(limit=limit, offset=offset), self._repo.count()
