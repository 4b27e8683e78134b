import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Registers every table on Base.metadata
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, CSRF_ENABLED, SECURITY_HEADERS_ENABLED
from .csrf import CSRF_COOKIE_NAME, CSRFMiddleware, generate_csrf_token, set_csrf_cookie
from .database import Base, engine
from .domain.addresses import router as addresses_router
from .domain.admin import router as admin_router
from .domain.bookings import router as bookings_router
from .domain.catalog import router as catalog_router
from .domain.cms import admin_router as admin_cms_router
from .domain.cms import router as cms_router
from .domain.payments import router as payments_router
from .domain.professionals import router as professionals_router
from .domain.reviews import router as reviews_router
from .rate_limiter import get_redis_client
from .routes.auth import router as auth_router
from .security_headers import SecurityHeadersMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SLOW_REQUEST_MS = 1000


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 HomeServices API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Database tables ready")
    except SQLAlchemyError as e:
        # Another worker may have created the tables first
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("Database tables already created by another worker")
        else:
            logger.error(f"❌ Failed to create database tables: {e}")

    try:
        get_redis_client()
    except Exception as e:
        logger.warning(f"⚠️ Redis unavailable, OTP sends will be refused and CMS reads uncached: {e}")

    yield
    logger.info("👋 HomeServices API shutting down")


app = FastAPI(title="HomeServices API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report a malformed Authorization header as 401 rather than 422"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"🔒 Missing or malformed Authorization header on {request.url.path}")
        return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    logger.warning(f"Validation failed for {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    if elapsed_ms > SLOW_REQUEST_MS:
        logger.warning(f"🐌 Slow request: {request.method} {request.url.path} took {elapsed_ms:.0f}ms")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
else:
    logger.warning("⚠️ Security headers disabled")

if CSRF_ENABLED:
    app.add_middleware(CSRFMiddleware)
else:
    logger.warning("⚠️ CSRF protection disabled")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

for router in (
    auth_router,
    catalog_router,
    reviews_router,
    addresses_router,
    bookings_router,
    payments_router,
    professionals_router,
    admin_router,
    cms_router,
    admin_cms_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"message": "HomeServices API is running"}


@app.get("/health")
def health():
    database = "connected"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"❌ Database health check failed: {e}")
        database = "unavailable"
    return {"status": "healthy" if database == "connected" else "degraded", "database": database}


@app.get("/health/redis")
async def redis_health_check():
    try:
        client = get_redis_client()
        started = time.perf_counter()
        client.ping()
        latency_ms = (time.perf_counter() - started) * 1000
        info = client.info()
    except Exception as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}

    return {
        "status": "healthy",
        "redis": {
            "connected": True,
            "response_time_ms": round(latency_ms, 2),
            "version": info.get("redis_version", "unknown"),
            "used_memory_human": info.get("used_memory_human", "unknown"),
        },
    }


@app.get("/csrf-token")
async def get_csrf_token(request: Request, response: Response):
    """Issue (or echo) the double-submit token for cookie-session clients"""
    token = request.cookies.get(CSRF_COOKIE_NAME)
    if not token:
        token = generate_csrf_token()
        set_csrf_cookie(response, token)
    return {"csrf_token": token}
