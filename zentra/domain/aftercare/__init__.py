"""Aftercare domain - Reusable aftercare instructions sent after treatments"""

from .router import router

__all__ = ["router"]
