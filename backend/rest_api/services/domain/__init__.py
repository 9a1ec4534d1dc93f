"""
Domain Services - business logic for the dairy back-office.

Usage:
    from rest_api.services.domain import CredentialService, StaffService

    identity = CredentialService(db).resolve(login_request)
    staff = StaffService(db).get_by_id(staff_id, tenant_id)
"""

from .credential_service import (
    CredentialService,
    FarmerIdentity,
    StaffIdentity,
    VerifiedIdentity,
)
from .tenant_service import TenantService
from .farmer_service import FarmerService
from .staff_service import StaffService
from .collection_service import CollectionService

__all__ = [
    "CredentialService",
    "FarmerIdentity",
    "StaffIdentity",
    "VerifiedIdentity",
    "TenantService",
    "FarmerService",
    "StaffService",
    "CollectionService",
]
