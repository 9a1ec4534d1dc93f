"""
Staff routers - /api/staff/*
Staff account creation, login and tenant-scoped reads.
"""

from .routes import router

__all__ = ["router"]
