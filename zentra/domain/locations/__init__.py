"""Locations domain - Premises a business takes bookings at"""

from .router import router

__all__ = ["router"]
