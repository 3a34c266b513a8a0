"""Blocked times domain - Holidays, breaks and closures that cannot be booked"""

from .router import router

__all__ = ["router"]
