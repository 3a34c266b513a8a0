"""Location repository - Database operations for business locations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Location


class LocationRepository:
    """Repository for location database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int) -> list[Location]:
        return (
            db.query(Location)
            .filter(Location.business_id == business_id)
            .order_by(Location.is_primary.desc(), Location.name)
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, location_id: int, business_id: int) -> Optional[Location]:
        return (
            db.query(Location)
            .filter(Location.id == location_id, Location.business_id == business_id)
            .first()
        )

    @staticmethod
    def clear_primary(db: Session, business_id: int) -> None:
        db.query(Location).filter(Location.business_id == business_id).update({Location.is_primary: False})

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> Location:
        location = Location(business_id=business_id, **fields)
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def update(db: Session, location: Location, **updates) -> Location:
        for key, value in updates.items():
            if value is not None and hasattr(location, key):
                setattr(location, key, value)
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def delete(db: Session, location: Location) -> None:
        db.delete(location)
        db.commit()
