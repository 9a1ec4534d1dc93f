"""
Repositories: thin query helpers over one mapped model.

Dairy centers are the tenants themselves and use BaseRepository. Everything a
tenant owns (farmers, staff, collection records) uses TenantRepository, whose
queries all take the tenant id as their first argument.

Usage:
    from rest_api.services.crud.repository import TenantRepository

    class StaffRepository(TenantRepository[DairyStaff]):
        def __init__(self, session: Session):
            super().__init__(DairyStaff, session)

    staff = StaffRepository(db).find_all(tenant_id, limit=10, offset=0, order_by=DairyStaff.id)
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from rest_api.models import Base

ModelT = TypeVar("ModelT", bound=Base)


def _window(query: Select, *, limit: int | None, offset: int | None, order_by: Any) -> Select:
    if order_by is not None:
        query = query.order_by(order_by)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query


class BaseRepository(Generic[ModelT]):
    """Queries over a model without tenant scoping. Deactivated rows are hidden by default."""

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session

    def _visible(self, query: Select, include_inactive: bool) -> Select:
        if include_inactive or not hasattr(self._model, "is_active"):
            return query
        return query.where(self._model.is_active.is_(True))

    def find_by_id(self, entity_id: int, *, include_inactive: bool = False) -> ModelT | None:
        query = select(self._model).where(self._model.id == entity_id)
        return self._session.scalar(self._visible(query, include_inactive))

    def find_all(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any = None,
    ) -> Sequence[ModelT]:
        query = self._visible(select(self._model), include_inactive=False)
        query = _window(query, limit=limit, offset=offset, order_by=order_by)
        return self._session.scalars(query).all()

    def count(self) -> int:
        query = self._visible(select(func.count()).select_from(self._model), include_inactive=False)
        return self._session.scalar(query) or 0

    def add(self, entity: ModelT) -> ModelT:
        """Stage a new row; the service commits."""
        self._session.add(entity)
        return entity

    def refresh(self, entity: ModelT) -> ModelT:
        self._session.refresh(entity)
        return entity


class TenantRepository(BaseRepository[ModelT]):
    """
    Queries over a tenant-owned model.

    Every read is filtered by the tenant id it is given, so a row of another
    dairy center is indistinguishable from a missing one.
    """

    def __init__(self, model: type[ModelT], session: Session):
        if not hasattr(model, "tenant_id"):
            raise TypeError(f"{model.__name__} has no tenant_id column; use BaseRepository")
        super().__init__(model, session)

    def _tenant_query(self, tenant_id: int) -> Select:
        return select(self._model).where(self._model.tenant_id == tenant_id)

    def find_by_id(  # type: ignore[override]
        self,
        entity_id: int,
        tenant_id: int,
        *,
        include_inactive: bool = False,
    ) -> ModelT | None:
        query = self._tenant_query(tenant_id).where(self._model.id == entity_id)
        return self._session.scalar(self._visible(query, include_inactive))

    def find_all(  # type: ignore[override]
        self,
        tenant_id: int,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any = None,
    ) -> Sequence[ModelT]:
        query = self._visible(self._tenant_query(tenant_id), include_inactive=False)
        query = _window(query, limit=limit, offset=offset, order_by=order_by)
        return self._session.scalars(query).all()

    def count(self, tenant_id: int) -> int:  # type: ignore[override]
        query = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.tenant_id == tenant_id)
        )
        return self._session.scalar(self._visible(query, include_inactive=False)) or 0
