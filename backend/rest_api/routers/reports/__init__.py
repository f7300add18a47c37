"""
Reporting routers - dashboard and daily stats.
"""

from .routes import router

__all__ = ["router"]
