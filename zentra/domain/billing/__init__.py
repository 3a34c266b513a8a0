"""Billing domain - Platform subscriptions, trial and usage"""

from .router import router

__all__ = ["router"]
