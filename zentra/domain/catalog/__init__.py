"""Catalog domain - Services a business offers"""

from .router import router

__all__ = ["router"]
