"""Clients domain - Client records, search and lookup by email"""

from .router import router

__all__ = ["router"]
