"""
Booking Notification Service
Customer emails triggered by booking and payment events.
Every sender is best-effort: failures are logged and reported, never raised.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import email_service
from ..config import OTP_EMAIL_DOMAIN
from ..models import AuthUser, Booking, Service

logger = logging.getLogger(__name__)


def _recipient(db: Session, booking: Booking) -> tuple[Optional[str], str]:
    """Customer email and display name; phone-only accounts have no deliverable email"""
    user = db.query(AuthUser).filter(AuthUser.id == booking.customer_id).first()
    name = (booking.customer.full_name if booking.customer else None) or "there"
    if not user or not user.email or user.email.endswith(f"@{OTP_EMAIL_DOMAIN}"):
        return None, name
    return user.email, name


def _service_name(db: Session, booking: Booking) -> str:
    service = booking.service or db.query(Service).filter(Service.id == booking.service_id).first()
    return service.name if service else "your service"


def _booking_ref(booking: Booking) -> str:
    return (booking.public_id or str(booking.id))[:8]


async def _dispatch(notification_type: str, booking: Booking, send, build) -> bool:
    """Resolve recipient and template fields via build(), then send; any failure is logged and reported"""
    try:
        email, fields = build()
        if not email:
            logger.debug(f"⚠️ No deliverable email for {notification_type} on booking {booking.id}")
            return False

        logger.info(f"📧 Sending {notification_type} for booking {booking.id}")
        await send(to=email, **fields)
        logger.info(f"✅ {notification_type} sent for booking {booking.id}")
        return True
    except email_service.EmailNotConfiguredError:
        logger.info(f"📭 Email not configured, skipped {notification_type} for booking {booking.id}")
        return False
    except Exception as e:
        logger.error(f"❌ Failed to send {notification_type} for booking {booking.id}: {e}")
        return False


async def notify_booking_confirmed(db: Session, booking: Booking) -> bool:
    def build():
        email, name = _recipient(db, booking)
        return email, {
            "customer_name": name,
            "booking_id": booking.id,
            "booking_ref": _booking_ref(booking),
            "service_name": _service_name(db, booking),
            "scheduled_at": booking.scheduled_at.strftime("%d %b %Y, %I:%M %p"),
            "amount": booking.final_amount,
        }

    return await _dispatch("booking confirmation", booking, email_service.send_booking_confirmation_email, build)


async def notify_booking_status(db: Session, booking: Booking) -> bool:
    def build():
        email, name = _recipient(db, booking)
        return email, {
            "customer_name": name,
            "booking_id": booking.id,
            "booking_ref": _booking_ref(booking),
            "service_name": _service_name(db, booking),
            "status": booking.status,
        }

    return await _dispatch("booking status update", booking, email_service.send_booking_status_email, build)


async def notify_payment_confirmed(db: Session, booking: Booking, amount: float, transaction_id: str) -> bool:
    def build():
        email, name = _recipient(db, booking)
        return email, {
            "customer_name": name,
            "booking_ref": _booking_ref(booking),
            "amount": amount,
            "transaction_id": transaction_id,
        }

    return await _dispatch("payment confirmation", booking, email_service.send_payment_confirmation_email, build)
