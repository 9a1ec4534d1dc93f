"""
Farmer and staff repositories.

Lookups go through the natural keys:
- farmer: (tenant, phone, member code)
- staff: (tenant, phone)
"""

from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy import exists as sql_exists
from sqlalchemy.orm import Session

from rest_api.models import DairyStaff, Farmer
from rest_api.services.crud.repository import TenantRepository


class FarmerRepository(TenantRepository[Farmer]):
    def __init__(self, session: Session):
        super().__init__(Farmer, session)

    def find_by_key(self, tenant_id: int, phone: str, member_code: str) -> Farmer | None:
        """Find the active farmer with this (tenant, phone, member code)."""
        query = self._tenant_query(tenant_id).where(
            Farmer.phone == phone,
            Farmer.member_code == member_code,
            Farmer.is_active.is_(True),
        )
        return self._session.scalar(query)

    def exists_by_key(self, tenant_id: int, phone: str, member_code: str) -> bool:
        query = select(
            sql_exists().where(
                Farmer.tenant_id == tenant_id,
                Farmer.phone == phone,
                Farmer.member_code == member_code,
            )
        )
        return bool(self._session.scalar(query))

    def names_by_member_code(self, tenant_id: int, member_codes: Iterable[str]) -> dict[str, str]:
        """
        Map member codes to farmer names within a tenant.

        Codes with no registered farmer are simply absent from the result.
        If two farmers share a member code the lowest id wins.
        """
        codes = set(member_codes)
        if not codes:
            return {}
        rows = self._session.execute(
            select(Farmer.member_code, Farmer.name)
            .where(Farmer.tenant_id == tenant_id, Farmer.member_code.in_(codes))
            .order_by(Farmer.id.desc())
        ).all()
        # Iterating newest first lets the oldest farmer overwrite
        return {code: name for code, name in rows}


class StaffRepository(TenantRepository[DairyStaff]):
    def __init__(self, session: Session):
        super().__init__(DairyStaff, session)

    def find_by_phone(self, tenant_id: int, phone: str) -> DairyStaff | None:
        """Find the active staff member with this (tenant, phone)."""
        query = self._tenant_query(tenant_id).where(
            DairyStaff.phone == phone,
            DairyStaff.is_active.is_(True),
        )
        return self._session.scalar(query)

    def exists_by_phone(self, tenant_id: int, phone: str) -> bool:
        query = select(
            sql_exists().where(
                DairyStaff.tenant_id == tenant_id,
                DairyStaff.phone == phone,
            )
        )
        return bool(self._session.scalar(query))

    def find_page(self, tenant_id: int, *, limit: int, offset: int) -> Sequence[DairyStaff]:
        return self.find_all(tenant_id, limit=limit, offset=offset, order_by=DairyStaff.id)
