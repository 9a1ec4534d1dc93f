"""
Principal models: farmers and dairy staff.

The two actor kinds share no identity table and are keyed differently:
a farmer by (tenant, phone, member code), staff by (tenant, phone).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .tenant import DairyCenter


class Farmer(AuditMixin, Base):
    """
    A cooperative member. Phone numbers may repeat inside a tenant, so the
    member code issued by the dairy center is part of the natural key.
    """

    __tablename__ = "farmer"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("dairy_center.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    member_code: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "phone", "member_code", name="uq_farmer_tenant_phone_member"),
        Index("ix_farmer_tenant_member", "tenant_id", "member_code"),
    )

    dairy_center: Mapped["DairyCenter"] = relationship(back_populates="farmers")

    def __repr__(self) -> str:
        return f"<Farmer(id={self.id}, member_code='{self.member_code}', tenant_id={self.tenant_id})>"


class DairyStaff(AuditMixin, Base):
    """A dairy center employee; uploads collection files and reads tenant-wide records."""

    __tablename__ = "dairy_staff"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("dairy_center.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "phone", name="uq_staff_tenant_phone"),
    )

    dairy_center: Mapped["DairyCenter"] = relationship(back_populates="staff")

    def __repr__(self) -> str:
        return f"<DairyStaff(id={self.id}, tenant_id={self.tenant_id})>"
