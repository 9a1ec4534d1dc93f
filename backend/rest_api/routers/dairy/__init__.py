"""
Dairy center routers - /api/dairy/*
Onboarding and listing of dairy centers (tenants).
"""

from .routes import router

__all__ = ["router"]
