"""Shared validation utilities"""

import re
from typing import Optional

IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")


def normalize_indian_phone(phone: Optional[str]) -> str:
    """
    Normalize an Indian mobile number to its 10 national digits.

    Args:
        phone: Phone number string in various formats (+91 98765 43210, 9876543210)

    Returns:
        10 digit national number

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        raise ValueError("Phone number is required")

    phone = phone.strip()
    if phone.startswith("+91"):
        phone = phone[3:]

    digits = re.sub(r"\D", "", phone)

    if len(digits) != 10:
        raise ValueError("Invalid phone number. Please enter a 10-digit mobile number")

    return digits


def to_e164_indian(phone: str) -> str:
    """10 digit national number to +91 E.164 format"""
    return f"+91{phone}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_ifsc(code: Optional[str]) -> Optional[str]:
    """Validate an IFSC bank branch code (4 letters, 0, 6 alphanumerics)"""
    if not code:
        return code
    code = code.strip().upper()
    if not IFSC_PATTERN.match(code):
        raise ValueError("Invalid IFSC code")
    return code


def is_safe_redirect(path: Optional[str]) -> bool:
    """Only same-site relative paths are accepted as post-login redirects"""
    return bool(path) and path.startswith("/") and not path.startswith("//")
