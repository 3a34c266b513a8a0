"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session,
        business_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        staff_id: Optional[int] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.business_id == business_id)
        if start:
            query = query.filter(Appointment.date >= start)
        if end:
            query = query.filter(Appointment.date <= end)
        if staff_id:
            query = query.filter(Appointment.staff_id == staff_id)
        return query.order_by(Appointment.date, Appointment.start_time).all()

    @staticmethod
    def get_recent(db: Session, business_id: int, limit: int = 100) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.business_id == business_id)
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: int, business_id: Optional[int] = None) -> Optional[Appointment]:
        query = db.query(Appointment).filter(Appointment.id == appointment_id)
        if business_id is not None:
            query = query.filter(Appointment.business_id == business_id)
        return query.first()

    @staticmethod
    def get_by_payment_intent(db: Session, payment_intent_id: str) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.stripe_payment_intent_id == payment_intent_id).first()

    @staticmethod
    def get_on_date(db: Session, business_id: int, day: date) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.business_id == business_id, Appointment.date == day)
            .order_by(Appointment.start_time)
            .all()
        )

    @staticmethod
    def get_booked_for_staff(db: Session, business_id: int, staff_id: int, day: date) -> list[Appointment]:
        """Appointments still holding a staff member's time on a day"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.business_id == business_id,
                Appointment.staff_id == staff_id,
                Appointment.date == day,
                Appointment.status != "cancelled",
            )
            .all()
        )

    @staticmethod
    def create(db: Session, business_id: int, **fields) -> Appointment:
        appointment = Appointment(business_id=business_id, **fields)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()
