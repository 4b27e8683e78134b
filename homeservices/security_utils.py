"""
Password hashing, session tokens and field encryption
"""

import base64
import hashlib
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import BANK_ENCRYPTION_KEY, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# (pattern, suggestion) pairs; each satisfied rule adds one point
PASSWORD_RULES = [
    (re.compile(r"[a-z]"), "Add lowercase letters"),
    (re.compile(r"[A-Z]"), "Add uppercase letters"),
    (re.compile(r"\d"), "Add numbers"),
    (re.compile(r'[!@#$%^&*(),.?":{}|<>_\-]'), "Add special characters"),
]
COMMON_PASSWORDS = {"password", "123456", "12345678", "qwerty", "admin", "letmein", "welcome"}
STRENGTH_LABELS = ["weak", "weak", "fair", "good", "strong"]


def hash_password_bcrypt(password: str) -> str:
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for OTP-only accounts (no hash) and for malformed hashes"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"❌ Unreadable password hash: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Score a sign-up password

    Returns:
        dict with 'score' (0-4), 'strength' (weak/fair/good/strong),
        'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    feedback = []
    if len(password) < 8:
        feedback.append("Password must be at least 8 characters long")
        score = 0
    else:
        score = 2 if len(password) >= 12 else 1

    for pattern, suggestion in PASSWORD_RULES:
        if pattern.search(password):
            score += 1
        else:
            feedback.append(suggestion)

    if password.lower() in COMMON_PASSWORDS:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    score = min(score, 4)
    return {
        "score": score,
        "strength": STRENGTH_LABELS[score],
        "feedback": feedback,
        "is_valid": len(password) >= 8 and score >= 3,
    }


# Session tokens


def create_jwt_token(data: dict[str, Any], expires_delta: timedelta) -> str:
    claims = {**data, "exp": datetime.utcnow() + expires_delta}
    return jose_jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """Decoded claims, or None when the token is malformed, forged or expired"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"🔒 Session token rejected: {e}")
        return None


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """'123456789012' -> '********9012'"""
    if len(data) <= visible_chars:
        return "*" * len(data)
    return "*" * (len(data) - visible_chars) + data[-visible_chars:]


# Bank account encryption


def get_fernet_key() -> bytes:
    """Dedicated key when configured, otherwise derived from SECRET_KEY"""
    if BANK_ENCRYPTION_KEY:
        return BANK_ENCRYPTION_KEY.encode()
    return base64.urlsafe_b64encode(hashlib.sha256(SECRET_KEY.encode()).digest())


cipher = Fernet(get_fernet_key())


def encrypt_value(value: str) -> str:
    return cipher.encrypt(value.encode()).decode()


def decrypt_value(encrypted: str) -> Optional[str]:
    """Plaintext, or None when the token was not produced with the current key"""
    try:
        return cipher.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        logger.error("❌ Failed to decrypt stored value (invalid token)")
        return None
