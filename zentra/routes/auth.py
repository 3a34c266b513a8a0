import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import firebase_admin
from fastapi import APIRouter, Depends, HTTPException
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import FIREBASE_PROJECT_ID, FRONTEND_URL
from ..database import get_db
from ..email_service import EmailDeliveryError, send_password_reset_email
from ..models import PasswordReset
from ..rate_limiter import password_reset_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_TOKEN_TTL = timedelta(hours=1)
MIN_PASSWORD_LENGTH = 6


def get_firebase_app():
    """Firebase Admin app, initialised on first use with Application Default Credentials"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        logger.info("Initialising Firebase Admin SDK")
        return firebase_admin.initialize_app(credentials.ApplicationDefault(), {"projectId": FIREBASE_PROJECT_ID})


class PasswordResetRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    email: Optional[str] = None
    newPassword: Optional[str] = None


@router.post("/send-password-reset")
async def send_password_reset(
    data: PasswordResetRequest,
    db: Session = Depends(get_db),
    _: None = Depends(password_reset_limiter),
):
    """Email a reset link; the response is the same whether or not the email exists"""
    email = data.email.strip().lower()
    token = secrets.token_hex(32)

    reset = db.query(PasswordReset).filter(PasswordReset.email == email).first()
    if not reset:
        reset = PasswordReset(email=email)
        db.add(reset)
    reset.token = token
    reset.expires_at = datetime.utcnow() + RESET_TOKEN_TTL
    db.commit()

    reset_url = f"{FRONTEND_URL}/reset-password?{urlencode({'token': token, 'email': email})}"
    try:
        await send_password_reset_email(email, reset_url)
        logger.info(f"🔑 Password reset email sent to {email}")
    except EmailDeliveryError as e:
        logger.error(f"❌ Password reset email failed for {email}: {e}")

    return {"success": True, "message": "If an account exists, a reset link has been sent."}


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new Firebase password using an emailed reset token"""
    if not data.token or not data.email or not data.newPassword:
        raise HTTPException(status_code=400, detail="Missing required fields")
    if len(data.newPassword) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    email = data.email.strip().lower()
    reset = db.query(PasswordReset).filter(PasswordReset.email == email).first()
    if not reset or not secrets.compare_digest(reset.token, data.token):
        raise HTTPException(status_code=400, detail="Invalid or expired reset link")

    if datetime.utcnow() > reset.expires_at:
        db.delete(reset)
        db.commit()
        raise HTTPException(status_code=400, detail="Reset link has expired. Please request a new one.")

    app = get_firebase_app()
    try:
        user = firebase_auth.get_user_by_email(email, app=app)
    except firebase_auth.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail="User not found") from e

    try:
        firebase_auth.update_user(user.uid, password=data.newPassword, app=app)
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"❌ Firebase password update failed for {email}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update password. Please try again.") from e

    db.delete(reset)
    db.commit()
    logger.info(f"✅ Password reset for {email}")

    return {"success": True, "message": "Password reset successful"}
