"""
Collection record repository.
"""

from datetime import date, time
from typing import Any, Sequence

from sqlalchemy import exists as sql_exists
from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from rest_api.models import CollectionRecord
from rest_api.services.crud.repository import TenantRepository


class CollectionRepository(TenantRepository[CollectionRecord]):
    def __init__(self, session: Session):
        super().__init__(CollectionRecord, session)

    def _newest_first(self, tenant_id: int):
        return self._tenant_query(tenant_id).order_by(
            CollectionRecord.collection_date.desc(),
            CollectionRecord.collection_time.desc(),
            CollectionRecord.id.desc(),
        )

    def insert_batch(self, rows: Sequence[dict[str, Any]]) -> int:
        """
        Insert one batch of decoded rows with a single executemany.

        Goes through Core so the session's identity map does not grow with
        the file. Not committed.
        """
        if not rows:
            return 0
        self._session.execute(insert(CollectionRecord), list(rows))
        return len(rows)

    def exists_same_shift(
        self,
        tenant_id: int,
        member_code: str,
        collection_date: date,
        collection_time: time,
    ) -> bool:
        """Whether a record already exists for this member, day and time."""
        query = select(
            sql_exists().where(
                CollectionRecord.tenant_id == tenant_id,
                CollectionRecord.member_code == member_code,
                CollectionRecord.collection_date == collection_date,
                CollectionRecord.collection_time == collection_time,
            )
        )
        return bool(self._session.scalar(query))

    def find_by_member(self, tenant_id: int, member_code: str) -> Sequence[CollectionRecord]:
        query = self._newest_first(tenant_id).where(CollectionRecord.member_code == member_code)
        return self._session.scalars(query).all()

    def find_by_member_and_month(
        self, tenant_id: int, member_code: str, month: str, year: str
    ) -> Sequence[CollectionRecord]:
        query = self._newest_first(tenant_id).where(
            CollectionRecord.member_code == member_code,
            CollectionRecord.aux_month == month,
            CollectionRecord.aux_year == year,
        )
        return self._session.scalars(query).all()

    def find_by_month(self, tenant_id: int, month: str, year: str) -> Sequence[CollectionRecord]:
        query = self._newest_first(tenant_id).where(
            CollectionRecord.aux_month == month,
            CollectionRecord.aux_year == year,
        )
        return self._session.scalars(query).all()
