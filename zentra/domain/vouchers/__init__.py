"""Vouchers domain - Gift voucher purchase, issue and redemption"""

from .router import router

__all__ = ["router"]
