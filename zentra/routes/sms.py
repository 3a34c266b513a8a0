"""
SMS Routes
Phone verification codes sent through the platform Twilio account
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..rate_limiter import sms_verification_limiter
from ..services import twilio_service
from ..services.twilio_service import INVALID_NUMBER_ERROR, NOT_MOBILE_ERROR, SMSError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sms", tags=["SMS"])


class VerificationRequest(BaseModel):
    phone: str = Field(..., min_length=4, max_length=20)
    code: str = Field(..., min_length=4, max_length=10)


@router.post("/send-verification")
async def send_verification(
    data: VerificationRequest,
    db: Session = Depends(get_db),
    _: None = Depends(sms_verification_limiter),
):
    phone = twilio_service.normalize_phone(data.phone)
    try:
        message_sid = await twilio_service.send_sms(
            db,
            to_phone=phone,
            message_body=twilio_service.verification_message(data.code),
            message_type="verification",
        )
    except SMSError as e:
        if e.code == INVALID_NUMBER_ERROR:
            raise HTTPException(status_code=400, detail="Invalid phone number format") from e
        if e.code == NOT_MOBILE_ERROR:
            raise HTTPException(status_code=400, detail="Phone number is not a valid mobile number") from e
        raise HTTPException(status_code=500, detail=f"Failed to send SMS: {e}") from e

    return {"success": True, "messageSid": message_sid}
