"""
Razorpay API client
Orders, payment lookups and refunds over the Razorpay REST API
"""

import logging
from typing import Any, Optional

import httpx

from ..config import PAYMENT_CURRENCY, RAZORPAY_API_BASE, RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET

logger = logging.getLogger(__name__)

# Razorpay rejects receipts longer than this
MAX_RECEIPT_LENGTH = 40

# Razorpay method -> payment_method column value
METHOD_MAP = {
    "card": "credit_card",
    "debitcard": "debit_card",
    "debit_card": "debit_card",
    "upi": "upi",
    "wallet": "wallet",
    "netbanking": "net_banking",
    "net_banking": "net_banking",
}


class PaymentGatewayError(Exception):
    """Raised when a Razorpay API call fails"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def to_minor_units(amount: float) -> int:
    """Rupees to paise"""
    return int(round(amount * 100))


def from_minor_units(amount: int) -> float:
    """Paise to rupees"""
    return amount / 100


def build_receipt(booking_public_id: str) -> str:
    """bk_ + first 32 hex characters of the booking UUID"""
    receipt = "bk_" + booking_public_id.replace("-", "")[:32]
    return receipt[:MAX_RECEIPT_LENGTH]


def map_method(razorpay_method: Optional[str]) -> str:
    """Map a Razorpay payment method onto our payment_method values, defaulting to upi"""
    if not razorpay_method:
        return "upi"
    return METHOD_MAP.get(razorpay_method.lower(), "upi")


def _credentials() -> tuple[str, str]:
    if not RAZORPAY_KEY_ID or not RAZORPAY_KEY_SECRET:
        logger.error("❌ Razorpay credentials not configured")
        raise PaymentGatewayError("Payment gateway is not configured")
    return RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET


async def _request(method: str, path: str, json_body: Optional[dict] = None) -> dict[str, Any]:
    auth = _credentials()
    url = f"{RAZORPAY_API_BASE}{path}"
    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.request(method, url, json=json_body, auth=auth)
    except httpx.HTTPError as e:
        logger.error(f"❌ Razorpay {method} {path} failed: {str(e)}")
        raise PaymentGatewayError(f"Payment gateway unreachable: {str(e)}") from e

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400:
        error = (data.get("error") or {}).get("description") or f"HTTP {response.status_code}"
        logger.error(f"❌ Razorpay {method} {path} returned {response.status_code}: {error}")
        raise PaymentGatewayError(error, status_code=response.status_code)

    return data


async def create_order(amount: int, receipt: str, notes: Optional[dict[str, str]] = None, currency: str = PAYMENT_CURRENCY) -> dict[str, Any]:
    """
    Create a Razorpay order.

    Args:
        amount: Amount in paise
        receipt: Merchant receipt, truncated to 40 characters
        notes: Key/value notes echoed back on payments and webhooks
    """
    payload = {
        "amount": amount,
        "currency": currency,
        "receipt": receipt[:MAX_RECEIPT_LENGTH],
        "notes": notes or {},
    }
    order = await _request("POST", "/orders", payload)
    logger.info(f"✅ Razorpay order created: {order.get('id')} ({amount} {currency})")
    return order


async def fetch_payment(payment_id: str) -> dict[str, Any]:
    """Fetch a payment by id"""
    return await _request("GET", f"/payments/{payment_id}")


async def refund_payment(payment_id: str, amount: Optional[int] = None, notes: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Refund a captured payment.

    Args:
        payment_id: Razorpay payment id
        amount: Amount in paise, full refund when omitted
        notes: Key/value notes stored on the refund
    """
    payload: dict[str, Any] = {"notes": notes or {}}
    if amount:
        payload["amount"] = amount
    refund = await _request("POST", f"/payments/{payment_id}/refund", payload)
    logger.info(f"✅ Razorpay refund {refund.get('id')} created for payment {payment_id}")
    return refund
