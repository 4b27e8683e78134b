"""
Webhook Security Module

Signature verification for payment gateway callbacks:
- Checkout signatures returned to the browser after payment
- Webhook signatures computed over the raw request body
Comparisons are constant time.
"""

import hashlib
import hmac
import logging

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

RAZORPAY_SIGNATURE_HEADER = "x-razorpay-signature"


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    pass


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_checkout_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Verify the signature Razorpay Checkout hands back after a payment.

    The signed message is "<order_id>|<payment_id>" keyed with the API key secret.
    """
    if not secret:
        raise WebhookSignatureError("Payment gateway secret is not configured")

    expected = compute_hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    return constant_time_compare(expected, signature)


async def verify_razorpay_webhook(request: Request, secret: str) -> bytes:
    """
    Verify a Razorpay webhook signature over the raw request body.

    Returns:
        The raw body, for parsing after verification

    Raises:
        HTTPException: 400 when the signature header is missing, 401 when it does not match
    """
    # Read raw body before any parsing
    raw_body = await request.body()
    signature = request.headers.get(RAZORPAY_SIGNATURE_HEADER, "")

    if not signature:
        logger.error("❌ Missing X-Razorpay-Signature header")
        raise HTTPException(status_code=400, detail="Missing signature")

    if not secret:
        logger.error("❌ Razorpay webhook secret not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    expected_signature = compute_hmac_sha256(secret, raw_body)

    if not constant_time_compare(expected_signature, signature):
        logger.error(f"❌ Razorpay webhook signature mismatch (body length {len(raw_body)} bytes)")
        raise HTTPException(status_code=401, detail="Invalid signature")

    logger.info("✅ Razorpay webhook signature verified")
    return raw_body
