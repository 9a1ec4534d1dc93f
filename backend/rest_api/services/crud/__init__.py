"""
CRUD Services - generic data access with tenant isolation.
"""

from .repository import BaseRepository, TenantRepository

__all__ = [
    "BaseRepository",
    "TenantRepository",
]
