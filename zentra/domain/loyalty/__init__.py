"""Loyalty domain - Points program settings, balances and rewards"""

from .router import router

__all__ = ["router"]
