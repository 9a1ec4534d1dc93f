"""
Farmer routers - /api/farmer/*
Self-registration and farmer login.
"""

from .routes import router

__all__ = ["router"]
