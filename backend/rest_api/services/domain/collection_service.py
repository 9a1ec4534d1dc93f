"""
Collection Service - reads milk collection records.

Records are written only by the CSV ingestion pipeline; this service serves
them back per member or per Nepali month, enriched with the farmer's name and
the dairy center's name.

Usage:
    from rest_api.services.domain import CollectionService

    records = CollectionService(db).list_farmer_records(tenant_id, "M-17", requester=ctx)
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.orm import Session

from rest_api.models import CollectionRecord
from rest_api.repositories import CollectionRepository, DairyCenterRepository, FarmerRepository
from shared.config.constants import UNKNOWN_FARMER_NAME, ActorKind
from shared.config.logging import get_logger
from shared.security.tenant_context import tenant_guarded
from shared.utils.exceptions import ForbiddenError, TenantNotFoundError
from shared.utils.schemas import CollectionRecordOutput

logger = get_logger(__name__)


class CollectionService:
    """
    Service for collection record queries.

    Business rules:
    - Staff may read every record of their dairy center
    - A farmer may read only the records of their own member code
    - A member code with no registered farmer is reported as "Unknown"
    """

    def __init__(self, db: Session):
        self._db = db
        self._records = CollectionRepository(db)
        self._centers = DairyCenterRepository(db)
        self._farmers = FarmerRepository(db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    @tenant_guarded
    def list_farmer_records(
        self,
        tenant_id: int,
        member_code: str,
        *,
        requester: dict[str, Any],
    ) -> list[CollectionRecordOutput]:
        """All records of one member code, newest first."""
        self._check_member_access(requester, member_code)
        records = self._records.find_by_member(tenant_id, member_code)
        return self._to_outputs(tenant_id, records)

    @tenant_guarded
    def list_farmer_records_by_month(
        self,
        tenant_id: int,
        member_code: str,
        month: str,
        year: str,
        *,
        requester: dict[str, Any],
    ) -> list[CollectionRecordOutput]:
        """Records of one member code for a Nepali month, newest first."""
        self._check_member_access(requester, member_code)
        records = self._records.find_by_member_and_month(tenant_id, member_code, month, year)
        return self._to_outputs(tenant_id, records)

    @tenant_guarded
    def list_tenant_records_by_month(
        self,
        tenant_id: int,
        month: str,
        year: str,
    ) -> list[CollectionRecordOutput]:
        """Every record of the dairy center for a Nepali month, newest first."""
        records = self._records.find_by_month(tenant_id, month, year)
        return self._to_outputs(tenant_id, records)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    @staticmethod
    def _check_member_access(requester: dict[str, Any], member_code: str) -> None:
        if requester.get("actor") != ActorKind.FARMER:
            return
        if requester.get("member_code") != member_code:
            raise ForbiddenError(
                "read records of another member",
                tenant_id=requester.get("tenant_id"),
                member_code=member_code,
            )

    def _to_outputs(
        self, tenant_id: int, records: Sequence[CollectionRecord]
    ) -> list[CollectionRecordOutput]:
        center = self._centers.find_by_id(tenant_id, include_inactive=True)
        if center is None:
            raise TenantNotFoundError(tenant_id)

        names = self._farmers.names_by_member_code(tenant_id, {r.member_code for r in records})
        logger.debug("Collection records loaded", tenant_id=tenant_id, count=len(records))
        return [
            CollectionRecordOutput(
                id=record.id,
                collection_date=record.collection_date,
                nepali_date=record.aux_date,
                nepali_month=record.aux_month,
                nepali_year=record.aux_year,
                collection_time=record.collection_time,
                member_code=record.member_code,
                farmer_name=names.get(record.member_code, UNKNOWN_FARMER_NAME),
                volume_liters=record.volume_liters,
                fat_percentage=record.fat_percentage,
                snf=record.snf,
                rate=record.rate,
                amount=record.amount,
                remarks=record.remarks,
                dairy_center_id=tenant_id,
                dairy_center_name=center.name,
                created_at=record.created_at,
            )
            for record in records
        ]
