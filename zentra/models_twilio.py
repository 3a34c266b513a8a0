"""
Twilio SMS Models
Log of SMS messages sent through the platform Twilio account
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class SMSLog(Base):
    """Track SMS messages sent via Twilio"""

    __tablename__ = "sms_logs"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=True)

    # Message details
    to_phone = Column(String(20), nullable=False)
    message_body = Column(Text, nullable=False)
    message_type = Column(String(50), nullable=False)  # verification, client_reminder
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)

    # Twilio response
    twilio_message_sid = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False)  # sent, failed
    error_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
