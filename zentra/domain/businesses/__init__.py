"""Businesses domain - Onboarding, profile, settings and public booking page"""

from .router import router

__all__ = ["router"]
