"""
Services module for business logic.

CLEAN ARCHITECTURE:
- domain/: Application services (business logic)
- ingestion/: Milk collection CSV parsing and batched persistence
- crud/: Generic repository base classes

Usage:
    from rest_api.services.domain import CredentialService
    identity = CredentialService(db).resolve(login_request)
"""
