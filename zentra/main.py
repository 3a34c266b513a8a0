import logging
import os
import time
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, ProgrammingError

# Import all models so they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_square,  # noqa: F401
    models_twilio,  # noqa: F401
)
from .database import Base, engine
from .domain.aftercare import router as aftercare_router
from .domain.appointments import calendar_router, payments_data_router, public_router
from .domain.appointments import router as appointments_router
from .domain.billing import router as billing_router
from .domain.blocked_times import router as blocked_times_router
from .domain.businesses import router as businesses_router
from .domain.catalog import router as catalog_router
from .domain.clients import router as clients_router
from .domain.consultations import router as consultations_router
from .domain.locations import router as locations_router
from .domain.loyalty import router as loyalty_router
from .domain.payments import router as stripe_router
from .domain.staff import router as staff_router
from .domain.vouchers import router as vouchers_router
from .routes.auth import router as auth_router
from .routes.cron import router as cron_router
from .routes.sms import router as sms_router
from .routes.square import router as square_router
from .routes.support import router as support_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("stripe").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except (OperationalError, ProgrammingError) as e:
        # Another worker may have created the tables first
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()
        logger.info("Redis connection established")
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed - public rate-limited endpoints will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Zentra API", version="1.0.0", lifespan=lifespan)


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-serialisable ctx values (e.g. exceptions) stringified"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(f"Authentication failed for {request.url.path}: Missing or invalid Authorization header")
            return JSONResponse(
                status_code=401,
                content={"detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."},
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://zentrabooking.com,https://www.zentrabooking.com,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-Onboarding-Required", "X-Trial-Expired", "X-Token-Expired", "Retry-After"],
)

# Routes
app.include_router(auth_router)
app.include_router(businesses_router)
app.include_router(staff_router)
app.include_router(locations_router)
app.include_router(catalog_router)
app.include_router(clients_router)
app.include_router(appointments_router)
app.include_router(public_router)
app.include_router(calendar_router)
app.include_router(payments_data_router)
app.include_router(blocked_times_router)
app.include_router(aftercare_router)
app.include_router(consultations_router)
app.include_router(loyalty_router)
app.include_router(vouchers_router)
app.include_router(stripe_router)
app.include_router(billing_router)
app.include_router(square_router)
app.include_router(sms_router)
app.include_router(support_router)
app.include_router(cron_router)


@app.get("/")
def root():
    return {"message": "Zentra API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
