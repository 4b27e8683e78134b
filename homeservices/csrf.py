"""
CSRF Protection Middleware for FastAPI

Implements double-submit cookie pattern for CSRF protection.
- Generates a CSRF token and sets it as a cookie
- Validates that the X-CSRF-Token header matches the cookie value
- Applies to state-changing methods (POST, PUT, PATCH, DELETE) authenticated by the session cookie

Requests carrying a Bearer token are not exposed to CSRF and skip the check.
"""
import logging
import secrets
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"

# Methods that require CSRF protection
PROTECTED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Paths that are exempt from CSRF protection (webhooks, login endpoints)
EXEMPT_PATHS: list[str] = [
    "/payments/webhook",  # Signed by the gateway
    "/auth/signin",
    "/auth/signup",
    "/auth/otp/",  # Phone login happens before any session exists
    "/health",
    "/csrf-token",
]


def generate_csrf_token() -> str:
    """Generate a cryptographically secure CSRF token"""
    return secrets.token_urlsafe(32)


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=True,
        samesite="strict",
        max_age=86400,
        path="/",
    )


def is_path_exempt(path: str) -> bool:
    """Check if a path is exempt from CSRF protection"""
    return any(path == exempt or path.startswith(exempt) for exempt in EXEMPT_PATHS)


def _csrf_error(detail: str) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": detail})


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    CSRF Protection Middleware using double-submit cookie pattern.

    How it works:
    1. On any request, if no CSRF cookie exists, generate one and set it
    2. For state-changing cookie-authenticated requests (POST/PUT/PATCH/DELETE):
       - Check that X-CSRF-Token header exists
       - Verify it matches the csrf_token cookie
       - Reject if missing or mismatched
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
        uses_bearer = request.headers.get("authorization", "").lower().startswith("bearer ")

        needs_validation = (
            request.method in PROTECTED_METHODS
            and not uses_bearer
            and not is_path_exempt(request.url.path)
        )

        if needs_validation:
            csrf_header = request.headers.get(CSRF_HEADER_NAME)

            if not csrf_cookie:
                logger.warning(f"🚫 CSRF: Missing cookie for {request.method} {request.url.path}")
                return _csrf_error("CSRF token missing. Please refresh the page and try again.")

            if not csrf_header:
                logger.warning(f"🚫 CSRF: Missing header for {request.method} {request.url.path}")
                return _csrf_error("CSRF token header missing. Please refresh the page and try again.")

            if not secrets.compare_digest(csrf_cookie, csrf_header):
                logger.warning(f"🚫 CSRF: Token mismatch for {request.method} {request.url.path}")
                return _csrf_error("CSRF token invalid. Please refresh the page and try again.")

            logger.debug(f"✅ CSRF: Valid token for {request.method} {request.url.path}")

        response = await call_next(request)

        if not csrf_cookie:
            set_csrf_cookie(response, generate_csrf_token())
            logger.debug("🔑 CSRF: Set new token cookie")

        return response
