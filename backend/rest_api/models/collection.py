"""
Milk collection records produced by CSV ingestion.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Time, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdType


class CollectionRecord(Base):
    """
    One milk-intake measurement for a member code.

    `member_code` is a soft reference: it is matched to a farmer by value and
    may name a farmer who has not registered yet. Several records per member
    per day are valid (morning and evening shifts), so there is no uniqueness
    over date, time and member.
    """

    __tablename__ = "milk_record"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("dairy_center.id"), nullable=False
    )
    member_code: Mapped[str] = mapped_column(String(50), nullable=False)

    collection_date: Mapped[date] = mapped_column(Date, nullable=False)
    collection_time: Mapped[time] = mapped_column(Time, nullable=False)
    # Nepali (Bikram Sambat) date as uploaded, plus its month/year segments
    aux_date: Mapped[str] = mapped_column(String(20), nullable=False)
    aux_month: Mapped[str] = mapped_column(String(10), nullable=False)
    aux_year: Mapped[str] = mapped_column(String(10), nullable=False)

    volume_liters: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    fat_percentage: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    snf: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_milk_record_tenant_member", "tenant_id", "member_code"),
        Index("ix_milk_record_tenant_aux_month", "tenant_id", "aux_year", "aux_month"),
        Index(
            "ix_milk_record_shift",
            "tenant_id", "member_code", "collection_date", "collection_time",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<CollectionRecord(id={self.id}, member_code='{self.member_code}', "
            f"date={self.collection_date}, time={self.collection_time})>"
        )
