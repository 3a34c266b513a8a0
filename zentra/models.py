from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# JSON columns are replaced, never mutated in place, so SQLAlchemy sees the change.

DEFAULT_BUSINESS_SETTINGS = {
    "timezone": "Europe/London",
    "currency": "gbp",
    "bookingBuffer": 0,  # minutes between appointments
    "cancellationPolicy": "",
    "depositRequired": False,
    "depositPercentage": 0,
    "notifications": {"email": True, "sms": False},
}


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    owner_uid = Column(String(255), unique=True, index=True, nullable=False)  # Firebase UID
    business_name = Column(String(255), nullable=False)
    owner_name = Column(String(255), nullable=True)
    email = Column(String(255), index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    business_type = Column(String(50), default="other", nullable=False)  # salon, spa, nails, ...
    address = Column(JSON, nullable=True)  # street, city, state, zipCode, country
    settings = Column(JSON, default=lambda: dict(DEFAULT_BUSINESS_SETTINGS), nullable=True)
    currency = Column(String(3), default="gbp", nullable=False)

    # Stripe Connect account receiving client payments
    stripe_account_id = Column(String(255), nullable=True)
    # Stripe customer used for the platform subscription
    stripe_customer_id = Column(String(255), nullable=True)
    subscription_plan = Column(String(50), nullable=True)  # starter, professional, business
    subscription_status = Column(String(50), nullable=True)  # active, past_due, canceled
    stripe_subscription_id = Column(String(255), nullable=True)

    trial_start = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)
    trial_ended_at = Column(DateTime, nullable=True)  # Set when a paid plan replaces the trial

    # {"active": bool, "settings": {...}, "rewards": [...]}
    loyalty_program = Column(JSON, nullable=True)
    # {"enabled": bool, "sendTime": "HH:MM", "recipientStaffId": int | None}
    daily_reminders = Column(JSON, nullable=True)
    # {"enabled": bool, "daysBefore": int}
    client_reminders = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    staff = relationship("Staff", back_populates="business", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    clients = relationship("Client", back_populates="business", cascade="all, delete-orphan")


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(100), nullable=True)
    services = Column(JSON, default=list)  # Service IDs this staff member performs
    schedule = Column(JSON, default=dict)  # weekday -> [{"start": "09:00", "end": "17:00"}]
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    join_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    business = relationship("Business", back_populates="staff")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    duration = Column(Integer, nullable=False)  # minutes
    price = Column(Float, default=0.0, nullable=False)
    deposit_required = Column(Boolean, default=False, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    business = relationship("Business", back_populates="services")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    birthday = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    loyalty_points = Column(Integer, default=0, nullable=False)
    membership_level = Column(String(20), default="bronze", nullable=False)  # bronze, silver, gold
    total_visits = Column(Integer, default=0, nullable=False)
    total_spent = Column(Float, default=0.0, nullable=False)
    last_visit = Column(DateTime, nullable=True)
    last_birthday_award = Column(DateTime, nullable=True)
    last_expiration = Column(DateTime, nullable=True)
    points_expired = Column(Integer, default=0, nullable=False)  # Lifetime expired points
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="clients")
    appointments = relationship("Appointment", back_populates="client")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), index=True, nullable=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)

    # Denormalized for reminders and the public payment page
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    service_name = Column(String(255), nullable=True)
    staff_name = Column(String(255), nullable=True)

    date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=True)  # HH:MM
    duration = Column(Integer, nullable=False)  # minutes
    price = Column(Float, default=0.0, nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    notes = Column(Text, nullable=True)

    # Payment
    payment_method = Column(String(20), nullable=True)  # card, cash, online
    payment_status = Column(String(20), default="pending", nullable=False)
    amount_paid = Column(Float, default=0.0, nullable=False)
    remaining_balance = Column(Float, nullable=True)
    deposit_amount = Column(Float, nullable=True)
    deposit_paid = Column(Boolean, default=False, nullable=False)
    transaction_id = Column(String(255), nullable=True)
    stripe_payment_intent_id = Column(String(255), index=True, nullable=True)
    paid_via_link = Column(Boolean, default=False, nullable=False)
    processed_payment_intents = Column(JSON, default=list)  # Every Stripe intent already applied

    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)
    # Set once completion has credited visits, spend and points to the client
    completion_credited = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="appointments")


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    type = Column(String(100), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)
    status = Column(String(20), default="scheduled", nullable=False)
    meeting_link = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)  # 1-5
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    address = Column(JSON, nullable=True)  # street, city, state, zipCode, country
    phone = Column(String(50), nullable=True)
    hours = Column(JSON, default=dict)  # weekday -> {"open", "close", "closed"}
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class BlockedTime(Base):
    __tablename__ = "blocked_times"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True)  # None blocks every staff member
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=True)  # HH:MM, None for the whole day
    end_time = Column(String(5), nullable=True)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class AftercareTemplate(Base):
    __tablename__ = "aftercare_templates"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), default="General", nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class LoyaltyTransaction(Base):
    __tablename__ = "loyalty_transactions"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), index=True, nullable=False)
    type = Column(String(20), nullable=False)  # earned, redeemed, expired, adjusted
    points = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    related_id = Column(String(255), nullable=True)  # appointment / reward reference
    created_at = Column(DateTime, server_default=func.now())


class Voucher(Base):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    code = Column(String(20), unique=True, index=True, nullable=False)
    value = Column(Float, nullable=False)
    original_value = Column(Float, nullable=False)
    balance = Column(Float, nullable=False)
    currency = Column(String(3), default="gbp", nullable=False)
    recipient_name = Column(String(255), nullable=False)
    recipient_email = Column(String(255), nullable=False)
    purchaser_name = Column(String(255), nullable=True)
    purchaser_email = Column(String(255), nullable=True)
    purchaser_phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    expiry_date = Column(DateTime, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, redeemed, cancelled
    redeemed = Column(Boolean, default=False, nullable=False)
    redeemed_amount = Column(Float, default=0.0, nullable=False)
    source = Column(String(30), default="online_purchase", nullable=False)  # online_purchase, manual
    stripe_payment_intent_id = Column(String(255), index=True, nullable=True)
    stripe_session_id = Column(String(255), index=True, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=True)
    business_name = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), default="open", nullable=False)  # open, closed
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ApiUsage(Base):
    __tablename__ = "api_usage"
    __table_args__ = (UniqueConstraint("business_id", "year", "month", name="uq_api_usage_month"),)

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    total_calls = Column(Integer, default=0, nullable=False)
    calls_by_endpoint = Column(JSON, default=dict)  # "METHOD:/path" -> count
    last_updated = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PasswordReset(Base):
    __tablename__ = "password_resets"

    email = Column(String(255), primary_key=True)
    token = Column(String(128), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
