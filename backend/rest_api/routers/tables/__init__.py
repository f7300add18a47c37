"""
Floor routers - areas and tables.
"""

from .routes import router

__all__ = ["router"]
