"""
Response hardening headers

The API only serves JSON, so the policy forbids framing by anything but the
frontend and switches off browser features outright. HSTS is only sent in
production, where TLS terminates in front of the app.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import ENVIRONMENT, FRONTEND_URL

logger = logging.getLogger(__name__)

CSP_DIRECTIVES = (
    "default-src 'self'",
    f"frame-ancestors 'self' {FRONTEND_URL}",
    "img-src 'self' data: https:",
    "connect-src 'self' https://api.razorpay.com",
    "base-uri 'none'",
    "form-action 'self'",
)

DISABLED_FEATURES = ("accelerometer", "camera", "geolocation", "gyroscope", "microphone", "payment", "usb")

STATIC_HEADERS = {
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "; ".join(CSP_DIRECTIVES),
    "Permissions-Policy": ", ".join(f"{feature}=()" for feature in DISABLED_FEATURES),
    "X-Permitted-Cross-Domain-Policies": "none",
    # Razorpay checkout opens in a popup
    "Cross-Origin-Opener-Policy": "same-origin-allow-popups",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds STATIC_HEADERS to every response outside ``exclude_paths``"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []
        self.hsts = ENVIRONMENT == "production"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return response

        response.headers.update(STATIC_HEADERS)
        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

        return response
