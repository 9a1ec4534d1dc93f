"""
Tenant model: the dairy center, root of data isolation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .principal import DairyStaff, Farmer


class DairyCenter(AuditMixin, Base):
    """
    An onboarded dairy center (tenant).
    Every farmer, staff member and collection record belongs to one.
    Names are unique regardless of case.
    """

    __tablename__ = "dairy_center"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    contact: Mapped[Optional[str]] = mapped_column(String(50))

    farmers: Mapped[list["Farmer"]] = relationship(back_populates="dairy_center")
    staff: Mapped[list["DairyStaff"]] = relationship(back_populates="dairy_center")

    def __repr__(self) -> str:
        return f"<DairyCenter(id={self.id}, name='{self.name}')>"


# Closes the check-then-insert race on onboarding
Index("uq_dairy_center_name_lower", func.lower(DairyCenter.name), unique=True)
