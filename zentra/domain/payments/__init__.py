"""Payments domain - Stripe Connect, client payments, refunds and webhooks"""

from .router import router

__all__ = ["router"]
