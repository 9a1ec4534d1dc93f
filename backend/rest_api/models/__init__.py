"""
SQLAlchemy ORM Models Package.

- base: Base class and AuditMixin
- tenant: DairyCenter (the tenant)
- principal: Farmer, DairyStaff
- collection: CollectionRecord
- token: RevokedToken
"""

from .base import Base, AuditMixin
from .tenant import DairyCenter
from .principal import Farmer, DairyStaff
from .collection import CollectionRecord
from .token import RevokedToken

__all__ = [
    "Base",
    "AuditMixin",
    "DairyCenter",
    "Farmer",
    "DairyStaff",
    "CollectionRecord",
    "RevokedToken",
]
