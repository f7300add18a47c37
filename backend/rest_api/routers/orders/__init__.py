"""
Order routers - orders and order items.
"""

from .routes import router

__all__ = ["router"]
