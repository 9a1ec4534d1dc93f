"""
Milk collection routers - /api/milk/*
CSV upload (staff) and record queries (farmers and staff).
"""

from .routes import router

__all__ = ["router"]
