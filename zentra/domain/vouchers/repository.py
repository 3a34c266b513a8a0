"""Voucher repository - Database operations for gift vouchers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Voucher


class VoucherRepository:
    """Repository for voucher database operations"""

    @staticmethod
    def get_all(db: Session, business_id: int) -> list[Voucher]:
        return (
            db.query(Voucher)
            .filter(Voucher.business_id == business_id)
            .order_by(Voucher.created_at.desc(), Voucher.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, voucher_id: int, business_id: int) -> Optional[Voucher]:
        return db.query(Voucher).filter(Voucher.id == voucher_id, Voucher.business_id == business_id).first()

    @staticmethod
    def get_by_code(db: Session, code: str, business_id: Optional[int] = None) -> Optional[Voucher]:
        query = db.query(Voucher).filter(Voucher.code == code.upper())
        if business_id is not None:
            query = query.filter(Voucher.business_id == business_id)
        return query.first()

    @staticmethod
    def get_by_payment(
        db: Session, payment_intent_id: Optional[str] = None, session_id: Optional[str] = None
    ) -> Optional[Voucher]:
        """Voucher already issued for this payment intent or checkout session"""
        if payment_intent_id:
            voucher = db.query(Voucher).filter(Voucher.stripe_payment_intent_id == payment_intent_id).first()
            if voucher:
                return voucher
        if session_id:
            return db.query(Voucher).filter(Voucher.stripe_session_id == session_id).first()
        return None

    @staticmethod
    def create(db: Session, **fields) -> Voucher:
        voucher = Voucher(**fields)
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
        return voucher
