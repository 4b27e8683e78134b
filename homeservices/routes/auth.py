"""
Authentication Routes
Email/password accounts, phone OTP login and session bootstrap
"""

import logging
import re
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..auth import (
    create_auth_user,
    create_session_token,
    check_route_access,
    get_current_profile,
    get_current_user,
    get_optional_user,
    get_role_based_redirect,
    get_user_from_token,
    record_sign_in,
    resolve_role,
)
from ..config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    OTP_EMAIL_DOMAIN,
    OTP_EXPIRY_MINUTES,
    OTP_LENGTH,
    OTP_MAX_ATTEMPTS,
    OTP_SEND_LIMIT,
    OTP_SEND_WINDOW_SECONDS,
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_SECURE,
)
from ..constants import ROLE_CUSTOMER
from ..database import get_db
from ..models import AuthUser, OtpVerification, Profile
from ..rate_limiter import RateLimiter
from ..schemas import (
    AuthSessionResponse,
    CurrentUserResponse,
    MessageResponse,
    OtpSendRequest,
    OtpSendResponse,
    OtpSessionRequest,
    OtpVerifyRequest,
    ProfileResponse,
    ProfileUpdate,
    RouteAccessResponse,
    SignInRequest,
    SignUpRequest,
)
from ..security_utils import check_password_strength, verify_password_bcrypt
from ..services import msg91_service
from ..shared.validators import is_safe_redirect, normalize_indian_phone, to_e164_indian
from ..webhook_security import constant_time_compare

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Per client IP (default 5 per 10 minutes)
otp_send_rate_limit = RateLimiter(OTP_SEND_LIMIT, OTP_SEND_WINDOW_SECONDS, key_prefix="otp_send")

OTP_PATTERN = re.compile(r"^\d{6}$")


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a cryptographically secure random numeric OTP code"""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


def build_current_user(user: AuthUser, profile: Optional[Profile]) -> CurrentUserResponse:
    role = profile.role if profile else (user.user_metadata or {}).get("role")
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        phone=user.phone,
        role=role,
        redirect_path=get_role_based_redirect(role),
        profile=ProfileResponse.model_validate(profile) if profile else None,
    )


# ============================================================================
# EMAIL / PASSWORD
# ============================================================================


def phone_in_use(db: Session, phone: str, exclude_user_id: Optional[int] = None) -> bool:
    """Whether another account already holds this 10 digit number (as profile or login phone)"""
    profile_query = db.query(Profile.id).filter(Profile.phone == phone)
    user_query = db.query(AuthUser.id).filter(AuthUser.phone == to_e164_indian(phone))
    if exclude_user_id is not None:
        profile_query = profile_query.filter(Profile.id != exclude_user_id)
        user_query = user_query.filter(AuthUser.id != exclude_user_id)
    return profile_query.first() is not None or user_query.first() is not None


@router.post("/signup", response_model=AuthSessionResponse, status_code=201)
async def signup(data: SignUpRequest, response: Response, db: Session = Depends(get_db)):
    """Create an account and sign it in"""
    strength = check_password_strength(data.password)
    if not strength["is_valid"]:
        raise HTTPException(
            status_code=400,
            detail={"message": "Password is too weak", "feedback": strength["feedback"]},
        )

    if db.query(AuthUser).filter(AuthUser.email == data.email).first():
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    phone_e164 = to_e164_indian(data.phone) if data.phone else None
    if data.phone and phone_in_use(db, data.phone):
        raise HTTPException(status_code=409, detail="An account with this phone number already exists")

    user = create_auth_user(
        db,
        email=data.email,
        password=data.password,
        phone=phone_e164,
        metadata={"role": data.role, "full_name": data.full_name, "phone": data.phone},
    )
    role = await resolve_role(db, user)
    token = create_session_token(user, role)
    set_session_cookie(response, token)
    record_sign_in(db, user)

    logger.info(f"✅ New {role} account created: user_id={user.id}")
    return AuthSessionResponse(
        user_id=user.id, role=role, redirect_path=get_role_based_redirect(role), access_token=token
    )


@router.post("/signin", response_model=AuthSessionResponse)
async def signin(data: SignInRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(AuthUser).filter(AuthUser.email == data.email).first()
    if not user or not verify_password_bcrypt(data.password, user.password_hash):
        logger.warning(f"🚫 Failed sign-in for {data.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if profile and not profile.is_active:
        raise HTTPException(status_code=403, detail="Account is suspended")

    role = await resolve_role(db, user)
    token = create_session_token(user, role)
    set_session_cookie(response, token)
    record_sign_in(db, user)

    redirect_path = data.redirect_to if is_safe_redirect(data.redirect_to) else get_role_based_redirect(role)
    return AuthSessionResponse(user_id=user.id, role=role, redirect_path=redirect_path, access_token=token)


@router.post("/signout", response_model=MessageResponse)
async def signout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    return build_current_user(user, profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Update the caller's own profile"""
    updates = data.model_dump(exclude_unset=True)
    if "phone" in updates:
        phone = updates["phone"] or None
        if phone and phone_in_use(db, phone, exclude_user_id=profile.id):
            raise HTTPException(status_code=409, detail="This phone number is already linked to another account")
        # Login phone follows the profile phone so OTP sign-in resolves to this account
        profile.user.phone = to_e164_indian(phone) if phone else None
        updates["phone"] = phone

    for key, value in updates.items():
        setattr(profile, key, value)
    db.commit()
    db.refresh(profile)
    return profile


@router.get("/route-access", response_model=RouteAccessResponse)
async def route_access(
    path: str = Query(..., min_length=1),
    message: Optional[str] = Query(None),
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Tell the frontend whether a page may be rendered for the current session"""
    role = await resolve_role(db, user, retries=1) if user else None
    redirect = check_route_access(path, authenticated=user is not None, role=role, message=message)
    return RouteAccessResponse(path=path, allowed=redirect is None, redirect=redirect, role=role)


# ============================================================================
# PHONE OTP
# ============================================================================


@router.post("/otp/send", response_model=OtpSendResponse)
async def send_otp(
    data: OtpSendRequest,
    db: Session = Depends(get_db),
    _: None = Depends(otp_send_rate_limit),
):
    """Generate a login code for a phone number and deliver it by SMS"""
    try:
        phone = normalize_indian_phone(data.phone)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    otp = generate_otp()
    expires_at = datetime.utcnow() + timedelta(minutes=OTP_EXPIRY_MINUTES)

    # Only the newest code for a phone is ever valid
    db.query(OtpVerification).filter(
        OtpVerification.phone == phone, OtpVerification.verified.is_(False)
    ).delete(synchronize_session=False)

    record = OtpVerification(phone=phone, otp=otp, expires_at=expires_at, verified=False, attempts=0)
    db.add(record)
    db.commit()
    db.refresh(record)

    success, request_id, error = await msg91_service.send_otp_sms(phone, otp)
    msg91_service.log_sms(db, to_e164_indian(phone), "login_otp", success, request_id, error)

    if not success:
        db.delete(record)
        db.commit()
        logger.error(f"❌ OTP delivery failed for ******{phone[-4:]}: {error}")
        raise HTTPException(status_code=502, detail=error or "Failed to send OTP")

    logger.info(f"📱 OTP sent to ******{phone[-4:]}, expires at {expires_at.isoformat()}")
    return OtpSendResponse(success=True, message="OTP sent successfully", expires_in=OTP_EXPIRY_MINUTES * 60)


@router.post("/otp/verify", response_model=AuthSessionResponse)
async def verify_otp(data: OtpVerifyRequest, response: Response, db: Session = Depends(get_db)):
    """Check a login code and sign the phone's account in, creating it on first login"""
    if not data.phone or not data.otp:
        raise HTTPException(status_code=400, detail="Phone number and OTP are required")

    try:
        phone = normalize_indian_phone(data.phone)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if not OTP_PATTERN.match(data.otp):
        raise HTTPException(status_code=400, detail="Invalid OTP format. OTP must be 6 digits")

    record = (
        db.query(OtpVerification)
        .filter(OtpVerification.phone == phone, OtpVerification.verified.is_(False))
        .order_by(OtpVerification.id.desc())
        .first()
    )
    if not record:
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    if datetime.utcnow() > record.expires_at:
        logger.warning(f"⏰ Expired OTP used for ******{phone[-4:]}")
        raise HTTPException(status_code=400, detail="OTP has expired. Please request a new one")

    if record.attempts >= OTP_MAX_ATTEMPTS:
        logger.warning(f"🚫 OTP attempt limit reached for ******{phone[-4:]}")
        raise HTTPException(
            status_code=400, detail="Maximum verification attempts exceeded. Please request a new OTP"
        )

    if not constant_time_compare(record.otp, data.otp):
        record.attempts += 1
        db.commit()
        logger.warning(f"❌ Wrong OTP for ******{phone[-4:]} (attempt {record.attempts}/{OTP_MAX_ATTEMPTS})")
        raise HTTPException(status_code=400, detail="Invalid OTP")

    record.verified = True
    db.commit()

    # The unique login phone decides the account, profile phone only covers accounts without one
    phone_e164 = to_e164_indian(phone)
    user = db.query(AuthUser).filter(AuthUser.phone == phone_e164).first()
    if user:
        profile = user.profile
    else:
        profile = db.query(Profile).filter(Profile.phone == phone).order_by(Profile.id).first()

    if profile:
        # Existing accounts keep their stored role
        user = profile.user
        role = profile.role
    else:
        if not user:
            user = create_auth_user(
                db,
                email=f"{phone}@{OTP_EMAIL_DOMAIN}",
                phone=phone_e164,
                metadata={
                    "role": data.role or ROLE_CUSTOMER,
                    "full_name": f"User {phone}",
                    "phone": phone,
                    "is_verified": True,
                },
                email_confirmed=True,
            )
            logger.info(f"✅ Created phone account {user.id} for ******{phone[-4:]}")

        role = await resolve_role(db, user)
        profile = db.query(Profile).filter(Profile.id == user.id).first()
        if not profile:
            role = role or data.role or ROLE_CUSTOMER
            profile = Profile(
                id=user.id,
                role=role,
                full_name=f"User {phone}",
                phone=phone,
                is_active=True,
                is_verified=True,
            )
            db.add(profile)
            db.commit()

    if not profile.is_active:
        raise HTTPException(status_code=403, detail="Account is suspended")

    token = create_session_token(user, role)
    set_session_cookie(response, token)
    record_sign_in(db, user)

    return AuthSessionResponse(
        user_id=user.id, role=role, redirect_path=get_role_based_redirect(role), access_token=token
    )


@router.post("/otp/session", response_model=CurrentUserResponse)
async def establish_session(data: OtpSessionRequest, response: Response, db: Session = Depends(get_db)):
    """Exchange an access token from OTP verification for a cookie session"""
    if not data.access_token:
        raise HTTPException(status_code=400, detail="Access token is required")

    user = get_user_from_token(db, data.access_token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    set_session_cookie(response, data.access_token)
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    return build_current_user(user, profile)
