"""
Dairy center repository. Dairy centers are the tenants themselves, so this
is the one repository without tenant filtering.
"""

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import DairyCenter
from rest_api.services.crud.repository import BaseRepository


class DairyCenterRepository(BaseRepository[DairyCenter]):
    def __init__(self, session: Session):
        super().__init__(DairyCenter, session)

    def find_by_name(self, name: str) -> DairyCenter | None:
        """Case-insensitive lookup, active or not: names stay reserved."""
        query = select(DairyCenter).where(func.lower(DairyCenter.name) == name.strip().lower())
        return self._session.scalar(query)

    def find_page(self, *, limit: int, offset: int) -> Sequence[DairyCenter]:
        return self.find_all(limit=limit, offset=offset, order_by=DairyCenter.id)
