import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./homeservices.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session tokens (default one week)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "hs_session")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "true").lower() == "true"

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Frontend base URL for redirects and CSP frame-ancestors
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# MSG91 OTP Configuration
MSG91_AUTH_KEY = os.getenv("MSG91_AUTH_KEY")
MSG91_TEMPLATE_ID = os.getenv("MSG91_TEMPLATE_ID")
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "5"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
# Phone-only accounts get a synthetic address on this domain
OTP_EMAIL_DOMAIN = os.getenv("OTP_EMAIL_DOMAIN", "otp.urban.local")

# Profile role lookup after sign-up (retries with linear backoff)
PROFILE_LOOKUP_RETRIES = int(os.getenv("PROFILE_LOOKUP_RETRIES", "3"))
PROFILE_LOOKUP_RETRY_DELAY = float(os.getenv("PROFILE_LOOKUP_RETRY_DELAY", "0.5"))

# Razorpay Configuration
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
# Falls back to the key secret when a dedicated webhook secret is not configured
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET") or RAZORPAY_KEY_SECRET
RAZORPAY_API_BASE = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

# S3-compatible object storage (Cloudflare R2, MinIO, AWS S3)
STORAGE_ENDPOINT_URL = os.getenv("STORAGE_ENDPOINT_URL")
STORAGE_ACCESS_KEY_ID = os.getenv("STORAGE_ACCESS_KEY_ID")
STORAGE_SECRET_ACCESS_KEY = os.getenv("STORAGE_SECRET_ACCESS_KEY")
STORAGE_REGION = os.getenv("STORAGE_REGION", "auto")
STORAGE_BUCKET_NAME = os.getenv("STORAGE_BUCKET_NAME", "professional-documents")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "HomeServices <noreply@homeservices.in>")

# Bank account numbers are encrypted at rest
# (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
BANK_ENCRYPTION_KEY = os.getenv("BANK_ENCRYPTION_KEY")

# Public CMS payloads are cached in Redis
CMS_CACHE_TTL = int(os.getenv("CMS_CACHE_TTL", "300"))

# Platform fee added to every booking (rupees)
BOOKING_SERVICE_FEE = float(os.getenv("BOOKING_SERVICE_FEE", "50"))

# Share of a completed booking's final amount paid out to the professional
PROFESSIONAL_PAYOUT_SHARE = float(os.getenv("PROFESSIONAL_PAYOUT_SHARE", "0.8"))

# Redis (rate limiting and CMS cache); REDIS_URL wins over host/port settings
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

# OTP send limit per client IP
OTP_SEND_LIMIT = int(os.getenv("OTP_SEND_LIMIT", "5"))
OTP_SEND_WINDOW_SECONDS = int(os.getenv("OTP_SEND_WINDOW_SECONDS", "600"))
# Reverse proxies in front of the API that append to X-Forwarded-For; 0 keys limits on the socket peer
TRUSTED_PROXY_COUNT = int(os.getenv("TRUSTED_PROXY_COUNT", "0"))

# HTTP hardening (disable only for local development and tests)
CSRF_ENABLED = os.getenv("CSRF_ENABLED", "true").lower() == "true"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]
