"""
MSG91 OTP Service
Dispatches login codes through the MSG91 OTP API and logs every attempt
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..config import MSG91_AUTH_KEY, MSG91_TEMPLATE_ID, OTP_EXPIRY_MINUTES, OTP_LENGTH
from ..models import SmsLog

logger = logging.getLogger(__name__)

MSG91_OTP_URL = "https://control.msg91.com/api/v5/otp"


async def send_otp_sms(phone: str, otp: str) -> tuple[bool, Optional[str], Optional[str]]:
    """
    Send an OTP to an Indian mobile number.

    Args:
        phone: 10 digit national number
        otp: Code to deliver

    Returns:
        Tuple of (success, request_id, error_message)
    """
    if not MSG91_AUTH_KEY:
        logger.error("❌ MSG91_AUTH_KEY not configured")
        return False, None, "SMS service is not configured"

    params = {
        "authkey": MSG91_AUTH_KEY,
        "mobile": f"91{phone}",
        "otp": otp,
        "otp_length": str(OTP_LENGTH),
        "otp_expiry": str(OTP_EXPIRY_MINUTES),
    }
    if MSG91_TEMPLATE_ID:
        params["template_id"] = MSG91_TEMPLATE_ID

    try:
        logger.info(f"📱 Sending OTP via MSG91 to ******{phone[-4:]}")
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                MSG91_OTP_URL, params=params, headers={"Content-Type": "application/json"}
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            error = data.get("message") or f"Failed to send OTP. Status: {response.status_code}"
            logger.error(f"❌ MSG91 rejected OTP request: {error}")
            return False, None, error

        if data.get("type") == "error":
            error = data.get("message") or "Failed to send OTP"
            logger.error(f"❌ MSG91 returned error: {error}")
            return False, None, error

        logger.info(f"✅ OTP dispatched via MSG91 (request_id={data.get('request_id')})")
        return True, data.get("request_id"), None

    except httpx.HTTPError as e:
        logger.error(f"❌ MSG91 API error: {str(e)}")
        return False, None, "Failed to send OTP. Please try again."


def log_sms(
    db: Session,
    phone: str,
    message_type: str,
    success: bool,
    request_id: Optional[str] = None,
    error_message: Optional[str] = None,
) -> None:
    """Persist an SMS dispatch record; a logging failure never blocks the caller"""
    try:
        db.add(
            SmsLog(
                phone=phone,
                message_type=message_type,
                status="sent" if success else "failed",
                provider_request_id=request_id,
                error_message=error_message,
            )
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to record SMS log for {message_type}: {str(e)}")
