"""
Repository Pattern implementation.

Usage:
    from rest_api.repositories import FarmerRepository

    repo = FarmerRepository(db)
    farmer = repo.find_by_key(tenant_id=1, phone="9812345678", member_code="M-17")
"""

from .dairy_center import DairyCenterRepository
from .principal import FarmerRepository, StaffRepository
from .collection import CollectionRepository
from .token import RevokedTokenRepository

__all__ = [
    "DairyCenterRepository",
    "FarmerRepository",
    "StaffRepository",
    "CollectionRepository",
    "RevokedTokenRepository",
]
