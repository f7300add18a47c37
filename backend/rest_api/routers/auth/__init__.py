"""
Authentication routers - /api/register, /api/login, /api/logout, /api/user
"""

from .routes import router

__all__ = ["router"]
