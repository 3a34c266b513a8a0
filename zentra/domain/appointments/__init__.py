"""Appointments domain - Booking, calendar, in-person payments and client emails"""

from .router import calendar_router, payments_data_router, public_router, router

__all__ = ["router", "public_router", "calendar_router", "payments_data_router"]
