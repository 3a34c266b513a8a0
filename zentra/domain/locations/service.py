"""Location service - Business logic for multi-location businesses"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, Location
from ...plan_limits import can_add
from .repository import LocationRepository
from .schemas import LocationCreate, LocationUpdate

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = LocationRepository()

    def get_locations(self, business: Business) -> list[Location]:
        return self.repo.get_all(self.db, business.id)

    def get_location(self, location_id: int, business: Business) -> Location:
        location = self.repo.get_by_id(self.db, location_id, business.id)
        if not location:
            raise HTTPException(status_code=404, detail="Location not found")
        return location

    def create_location(self, data: LocationCreate, business: Business) -> Location:
        allowed, error_message = can_add(self.db, business, "locations")
        if not allowed:
            logger.warning(f"⚠️ Business {business.id} reached location limit: {error_message}")
            raise HTTPException(status_code=403, detail=error_message)

        # The first location is always the primary one
        is_primary = data.isPrimary or not self.repo.get_all(self.db, business.id)
        if is_primary:
            self.repo.clear_primary(self.db, business.id)

        location = self.repo.create(
            self.db,
            business.id,
            name=data.name,
            address=data.address.model_dump() if data.address else None,
            phone=data.phone,
            hours={day: hours.model_dump() for day, hours in data.hours.items()},
            is_primary=is_primary,
        )
        logger.info(f"📍 Location '{location.name}' ({location.id}) created for business {business.id}")
        return location

    def update_location(self, location_id: int, data: LocationUpdate, business: Business) -> Location:
        location = self.get_location(location_id, business)
        updates = {"name": data.name, "phone": data.phone}
        if data.address is not None:
            updates["address"] = data.address.model_dump()
        if data.hours is not None:
            updates["hours"] = {day: hours.model_dump() for day, hours in data.hours.items()}
        if data.isPrimary:
            self.repo.clear_primary(self.db, business.id)
            updates["is_primary"] = True
        return self.repo.update(self.db, location, **updates)

    def delete_location(self, location_id: int, business: Business) -> dict:
        location = self.get_location(location_id, business)
        if location.is_primary and len(self.repo.get_all(self.db, business.id)) > 1:
            raise HTTPException(status_code=400, detail="Make another location primary before deleting this one")
        self.repo.delete(self.db, location)
        return {"message": "Location deleted"}
