"""
Square API client
OAuth token exchange, merchant/location lookup, payments and refunds over httpx
"""

import base64
import hashlib
import logging
from typing import Optional
from urllib.parse import quote

import httpx
from cryptography.fernet import Fernet

from ..config import (
    SECRET_KEY,
    SQUARE_APPLICATION_ID,
    SQUARE_APPLICATION_SECRET,
    SQUARE_ENVIRONMENT,
    SQUARE_REDIRECT_URI,
)

logger = logging.getLogger(__name__)

SQUARE_VERSION = "2024-12-18"
SQUARE_SCOPES = "MERCHANT_PROFILE_READ PAYMENTS_READ PAYMENTS_WRITE CUSTOMERS_READ CUSTOMERS_WRITE"

# Sandbox and Production use different hosts
if SQUARE_ENVIRONMENT == "production":
    SQUARE_OAUTH_URL = "https://connect.squareup.com"
    SQUARE_API_URL = "https://connect.squareup.com/v2"
else:
    SQUARE_OAUTH_URL = "https://connect.squareupsandbox.com"
    SQUARE_API_URL = "https://connect.squareupsandbox.com/v2"


def _fernet_key() -> bytes:
    return base64.urlsafe_b64encode(hashlib.sha256(SECRET_KEY.encode()).digest())


cipher_suite = Fernet(_fernet_key())


class SquareAPIError(Exception):
    """Square returned an error payload"""

    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def encrypt_token(token: str) -> str:
    """Encrypt a token for storage"""
    return cipher_suite.encrypt(token.encode()).decode()


def decrypt_token(encrypted_token: str) -> str:
    """Decrypt a stored token"""
    return cipher_suite.decrypt(encrypted_token.encode()).decode()


def is_configured() -> bool:
    return bool(SQUARE_APPLICATION_ID and SQUARE_APPLICATION_SECRET)


def _headers(access_token: Optional[str] = None) -> dict:
    headers = {"Content-Type": "application/json", "Square-Version": SQUARE_VERSION}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def _error_detail(response: httpx.Response) -> str:
    """First error detail from a Square error body"""
    try:
        errors = response.json().get("errors") or []
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if errors:
        return errors[0].get("detail") or errors[0].get("code") or "Square request failed"
    return f"HTTP {response.status_code}"


def build_authorize_url(state: str) -> str:
    """OAuth 2.0 authorization URL; Square expects '+' between scopes"""
    return (
        f"{SQUARE_OAUTH_URL}/oauth2/authorize"
        f"?client_id={SQUARE_APPLICATION_ID}"
        f"&response_type=code"
        f"&scope={SQUARE_SCOPES.replace(' ', '+')}"
        f"&state={state}"
        f"&redirect_uri={quote(SQUARE_REDIRECT_URI, safe='')}"
    )


async def exchange_code(code: str) -> dict:
    """Exchange an authorization code for access and refresh tokens"""
    payload = {
        "client_id": SQUARE_APPLICATION_ID,
        "client_secret": SQUARE_APPLICATION_SECRET,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": SQUARE_REDIRECT_URI,
    }
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(f"{SQUARE_OAUTH_URL}/oauth2/token", json=payload, headers=_headers())

    if response.status_code != 200:
        detail = _error_detail(response)
        logger.error(f"❌ Square token exchange failed: {detail}")
        raise SquareAPIError(f"Failed to exchange authorization code: {detail}")

    return response.json()


async def get_merchant(access_token: str) -> dict:
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(f"{SQUARE_API_URL}/merchants/me", headers=_headers(access_token))

    if response.status_code != 200:
        raise SquareAPIError(_error_detail(response))
    return response.json().get("merchant", {})


async def get_location_id(access_token: str) -> Optional[str]:
    """
    Location to charge against: the first ACTIVE location, otherwise the
    first location, otherwise None.
    """
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(f"{SQUARE_API_URL}/locations", headers=_headers(access_token))

    if response.status_code != 200:
        logger.error(f"❌ Failed to fetch Square locations: {response.text}")
        raise SquareAPIError(_error_detail(response))

    locations = response.json().get("locations", [])
    for location in locations:
        if location.get("status") == "ACTIVE":
            logger.info(f"✅ Found active location: {location.get('id')}")
            return location.get("id")

    if locations:
        logger.warning(f"⚠️ No active location found, using first location: {locations[0].get('id')}")
        return locations[0].get("id")

    logger.warning("⚠️ Square merchant has no locations")
    return None


async def create_payment(access_token: str, payload: dict) -> dict:
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{SQUARE_API_URL}/payments", json=payload, headers=_headers(access_token)
        )

    if response.status_code not in (200, 201):
        detail = _error_detail(response)
        logger.error(f"❌ Square payment failed: {detail}")
        raise SquareAPIError(detail)

    return response.json().get("payment", {})


async def create_refund(access_token: str, payload: dict) -> dict:
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{SQUARE_API_URL}/refunds", json=payload, headers=_headers(access_token)
        )

    if response.status_code not in (200, 201):
        detail = _error_detail(response)
        logger.error(f"❌ Square refund failed: {detail}")
        raise SquareAPIError(detail)

    return response.json().get("refund", {})
