"""
API usage tracking
Monthly per-business call counters, used for the usage dashboard and plan limits
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_business
from .database import get_db
from .models import ApiUsage, Business
from .plan_limits import UNLIMITED, get_active_plan

logger = logging.getLogger(__name__)


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _get_month(db: Session, business_id: int, year: int, month: int) -> Optional[ApiUsage]:
    return (
        db.query(ApiUsage)
        .filter(ApiUsage.business_id == business_id, ApiUsage.year == year, ApiUsage.month == month)
        .first()
    )


def record_api_call(db: Session, business_id: int, method: str, path: str, now: Optional[datetime] = None) -> None:
    """Increment the current month's counters; errors are logged, never raised"""
    now = now or datetime.utcnow()
    endpoint = f"{method.upper()}:{path}"

    try:
        usage = _get_month(db, business_id, now.year, now.month)
        if usage is None:
            usage = ApiUsage(business_id=business_id, year=now.year, month=now.month, total_calls=0, calls_by_endpoint={})
            db.add(usage)

        counters = dict(usage.calls_by_endpoint or {})
        counters[endpoint] = counters.get(endpoint, 0) + 1
        usage.calls_by_endpoint = counters
        usage.total_calls = (usage.total_calls or 0) + 1
        usage.last_updated = now
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to track API call {endpoint} for business {business_id}: {e}")


async def track_api_usage(
    request: Request,
    business: Business = Depends(get_current_business),
    db: Session = Depends(get_db),
) -> None:
    """Router-level dependency counting each authenticated call"""
    record_api_call(db, business.id, request.method, request.url.path)


def get_usage_stats(db: Session, business: Business, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    current = _get_month(db, business.id, now.year, now.month)
    last_year, last_month = _previous_month(now.year, now.month)
    previous = _get_month(db, business.id, last_year, last_month)

    current_calls = current.total_calls if current else 0
    endpoints = (current.calls_by_endpoint or {}) if current else {}
    top_endpoints = sorted(endpoints.items(), key=lambda item: item[1], reverse=True)[:5]

    limit = get_active_plan(business)["limits"]["apiCalls"]
    if limit == UNLIMITED or limit <= 0:
        percentage = 0.0
    else:
        percentage = round(current_calls / limit * 100, 1)

    return {
        "currentMonth": {"year": now.year, "month": now.month, "calls": current_calls},
        "lastMonth": {
            "year": last_year,
            "month": last_month,
            "calls": previous.total_calls if previous else 0,
        },
        "totalCalls": current_calls,
        "topEndpoints": [{"endpoint": name, "calls": count} for name, count in top_endpoints],
        "limit": limit,
        "percentageUsed": percentage,
    }
