import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import Business
from .plan_limits import has_access

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


def _b64decode(segment: str) -> bytes:
    padding_len = -len(segment) % 4
    return base64.urlsafe_b64decode(segment + "=" * padding_len)


async def get_google_public_keys(force_refresh: bool = False):
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL, timeout=10.0)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then audience, issuer, expiry, issued-at and auth_time claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token header") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256":
        raise HTTPException(status_code=401, detail="Invalid token algorithm")
    if not kid:
        raise HTTPException(status_code=401, detail="Token missing key ID")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    try:
        cert = load_pem_x509_certificate(public_keys[kid].encode())
        cert.public_key().verify(
            _b64decode(signature_b64),
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    try:
        claims = json.loads(_b64decode(payload_b64))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token payload") from e

    if claims.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if claims.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if claims.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    if claims.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        raise HTTPException(status_code=401, detail="Invalid token")
    if "auth_time" not in claims:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return claims


async def get_firebase_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decoded Firebase claims for the caller, with the UID normalised under "uid" """
    claims = await verify_firebase_token(credentials.credentials)

    # Firebase ID tokens use 'sub' as the user ID claim
    uid = claims.get("sub") or claims.get("user_id") or claims.get("uid")
    if not uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return {**claims, "uid": uid}


async def get_current_business(
    claims: dict = Depends(get_firebase_claims),
    db: Session = Depends(get_db),
) -> Business:
    """Business owned by the authenticated user"""
    business = db.query(Business).filter(Business.owner_uid == claims["uid"]).first()
    if not business:
        logger.info(f"ℹ️ No business yet for uid {claims['uid']}")
        raise HTTPException(
            status_code=404,
            detail="Business not found. Please complete onboarding.",
            headers={"X-Onboarding-Required": "true"},
        )
    return business


async def get_current_business_with_access(
    business: Business = Depends(get_current_business),
) -> Business:
    """
    Business with a running trial or an active subscription.
    Use this dependency for dashboard routes once the trial may have ended.
    """
    if not has_access(business):
        logger.warning(f"⚠️ Business {business.id} accessed dashboard after trial expiry")
        raise HTTPException(
            status_code=403,
            detail="Your free trial has ended. Please choose a plan to continue.",
            headers={"X-Trial-Expired": "true"},
        )
    return business
