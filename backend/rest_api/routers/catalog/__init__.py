"""
Menu routers - categories and menu items.
"""

from .routes import router

__all__ = ["router"]
