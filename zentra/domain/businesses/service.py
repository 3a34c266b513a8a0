"""Business service - Onboarding, profile and settings"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import TRIAL_DAYS
from ...email_service import EmailDeliveryError, send_welcome_email
from ...models import DEFAULT_BUSINESS_SETTINGS, Business
from .repository import BusinessRepository
from .schemas import BusinessCreate, BusinessUpdate, ReminderSettingsUpdate

logger = logging.getLogger(__name__)


def merge_settings(current: Optional[dict], updates: dict) -> dict:
    """New settings dict with updates applied one level deep"""
    merged = {**DEFAULT_BUSINESS_SETTINGS, **(current or {})}
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class BusinessService:
    """Service layer for business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BusinessRepository()

    async def onboard(self, owner_uid: str, data: BusinessCreate) -> Business:
        """Create the caller's business and start the free trial"""
        if self.repo.get_by_owner_uid(self.db, owner_uid):
            raise HTTPException(status_code=409, detail="Business already exists for this account")

        now = datetime.utcnow()
        settings = merge_settings(None, {"currency": data.currency})
        if data.timezone:
            settings["timezone"] = data.timezone

        business = self.repo.create(
            self.db,
            owner_uid=owner_uid,
            business_name=data.businessName,
            owner_name=data.ownerName,
            email=data.email,
            phone=data.phone,
            business_type=data.businessType,
            address=data.address.model_dump() if data.address else None,
            settings=settings,
            currency=data.currency,
            trial_start=now,
            trial_end=now + timedelta(days=TRIAL_DAYS),
        )
        logger.info(f"✅ Business {business.id} onboarded for uid {owner_uid}, trial ends {business.trial_end}")

        try:
            await send_welcome_email(business.email, business.owner_name, business.business_name)
        except EmailDeliveryError as e:
            logger.error(f"❌ Welcome email failed for business {business.id}: {e}")

        return business

    def update(self, business: Business, data: BusinessUpdate) -> Business:
        updates = {}
        if data.businessName is not None:
            updates["business_name"] = data.businessName
        if data.ownerName is not None:
            updates["owner_name"] = data.ownerName
        if data.email is not None:
            updates["email"] = data.email
        if data.phone is not None:
            updates["phone"] = data.phone
        if data.businessType is not None:
            updates["business_type"] = data.businessType
        if data.address is not None:
            updates["address"] = data.address.model_dump()
        if data.settings is not None:
            settings_updates = data.settings.model_dump(exclude_none=True)
            updates["settings"] = merge_settings(business.settings, settings_updates)
            if "currency" in settings_updates:
                updates["currency"] = settings_updates["currency"].lower()

        return self.repo.update(self.db, business, **updates)

    def update_reminders(self, business: Business, data: ReminderSettingsUpdate) -> Business:
        updates = {}
        if data.dailyReminders is not None:
            updates["daily_reminders"] = data.dailyReminders.model_dump()
        if data.clientReminders is not None:
            updates["client_reminders"] = data.clientReminders.model_dump()
        business = self.repo.update(self.db, business, **updates)
        logger.info(f"🔔 Reminder settings updated for business {business.id}")
        return business

    def get_public(self, business_id: int) -> tuple[Business, list, list]:
        business = self.repo.get_by_id(self.db, business_id)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        services = self.repo.get_active_services(self.db, business.id)
        staff = self.repo.get_active_staff(self.db, business.id)
        return business, services, staff
