import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    PROFILE_LOOKUP_RETRIES,
    PROFILE_LOOKUP_RETRY_DELAY,
    SESSION_COOKIE_NAME,
)
from .constants import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_PROFESSIONAL, USER_ROLES
from .database import get_db
from .models import AuthUser, Profile
from .security_utils import create_jwt_token, hash_password_bcrypt, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ROLE_DASHBOARDS = {
    ROLE_ADMIN: "/admin/dashboard",
    ROLE_PROFESSIONAL: "/professional/dashboard",
    ROLE_CUSTOMER: "/customer/dashboard",
}

# Frontend route groups used by check_route_access
AUTH_ROUTES = ("/login", "/register")
ADMIN_ONLY_ROUTES = ("/users",)
ROLE_ROUTES = ("/customer", "/professional", "/admin")
PROTECTED_ROUTES = ("/dashboard", "/bookings", "/profile")


def get_role_based_redirect(role: Optional[str]) -> str:
    """Dashboard path for a role, /dashboard when the role is unknown"""
    return ROLE_DASHBOARDS.get(role, "/dashboard")


def create_session_token(user: AuthUser, role: Optional[str]) -> str:
    """Issue a signed session token for a user"""
    return create_jwt_token(
        {"sub": str(user.id), "role": role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_auth_user(
    db: Session,
    email: str,
    password: Optional[str] = None,
    phone: Optional[str] = None,
    metadata: Optional[dict] = None,
    email_confirmed: bool = False,
) -> AuthUser:
    """
    Create a login identity together with its profile row.

    The profile is seeded from metadata (role, full_name, phone) the same way
    for password and phone sign-ups.
    """
    metadata = dict(metadata or {})
    role = metadata.get("role") if metadata.get("role") in USER_ROLES else ROLE_CUSTOMER
    metadata["role"] = role

    user = AuthUser(
        email=email,
        phone=phone,
        password_hash=hash_password_bcrypt(password) if password else None,
        user_metadata=metadata,
        email_confirmed=email_confirmed,
    )
    db.add(user)
    db.flush()

    db.add(
        Profile(
            id=user.id,
            role=role,
            full_name=metadata.get("full_name"),
            phone=metadata.get("phone"),
            is_verified=bool(metadata.get("is_verified", False)),
            is_active=True,
        )
    )
    db.commit()
    db.refresh(user)
    logger.info(f"✅ Created auth user {user.id} with role {role}")
    return user


async def resolve_role(
    db: Session,
    user: AuthUser,
    retries: int = PROFILE_LOOKUP_RETRIES,
    delay: float = PROFILE_LOOKUP_RETRY_DELAY,
) -> Optional[str]:
    """
    Resolve a user's role, preferring the profile row over sign-up metadata.

    A freshly created profile may not be visible yet, so the lookup is retried
    with linear backoff before falling back to metadata.
    """
    for attempt in range(1, retries + 1):
        row = db.query(Profile.role).filter(Profile.id == user.id).first()
        if row and row.role:
            return row.role
        if attempt < retries:
            logger.debug(f"🔍 Profile for user {user.id} not found, retry {attempt}/{retries}")
            await asyncio.sleep(delay * attempt)

    metadata_role = (user.user_metadata or {}).get("role")
    if metadata_role in USER_ROLES:
        logger.warning(f"⚠️ Using metadata role for user {user.id}, profile row missing")
        return metadata_role
    return None


def check_route_access(pathname: str, authenticated: bool, role: Optional[str], message: Optional[str] = None) -> Optional[str]:
    """
    Decide whether a frontend route may be shown.

    Returns None when access is allowed, otherwise the path (with query) to redirect to.
    """
    login_redirect = "/login?" + urlencode({"redirect": pathname})

    if authenticated and pathname.startswith(AUTH_ROUTES):
        target = get_role_based_redirect(role)
        if message:
            target += "?" + urlencode({"message": message})
        return target

    if pathname.startswith(ADMIN_ONLY_ROUTES):
        if not authenticated:
            return login_redirect
        if role != ROLE_ADMIN:
            return "/dashboard?error=unauthorized"

    is_role_route = pathname.startswith(ROLE_ROUTES)
    if is_role_route:
        if not authenticated:
            return login_redirect
        if not role:
            return "/login?error=role_not_set"
        for prefix, required in (
            ("/admin", ROLE_ADMIN),
            ("/professional", ROLE_PROFESSIONAL),
            ("/customer", ROLE_CUSTOMER),
        ):
            if pathname.startswith(prefix) and role != required:
                return f"{get_role_based_redirect(role)}?error=unauthorized"

    if not is_role_route and pathname.startswith(PROTECTED_ROUTES) and not authenticated:
        return login_redirect

    return None


def get_session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer token first, then the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


def get_user_from_token(db: Session, token: Optional[str]) -> Optional[AuthUser]:
    if not token:
        return None
    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None
    return db.query(AuthUser).filter(AuthUser.id == user_id).first()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthUser:
    token = get_session_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = get_user_from_token(db, token)
    if not user:
        logger.warning(f"❌ Invalid or expired session for {request.url.path}")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[AuthUser]:
    return get_user_from_token(db, get_session_token(request, credentials))


async def get_current_profile(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if not profile:
        raise HTTPException(status_code=401, detail="Profile not found")
    if not profile.is_active:
        logger.warning(f"🚫 Suspended account {user.id} attempted access")
        raise HTTPException(status_code=403, detail="Account is suspended")
    return profile


def require_role(*roles: str):
    """Dependency factory restricting an endpoint to profiles with one of the given roles"""

    async def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in roles:
            raise HTTPException(
                status_code=403, detail=f"Forbidden: {' or '.join(roles)} role required"
            )
        return profile

    return dependency


require_customer = require_role(ROLE_CUSTOMER)
require_professional = require_role(ROLE_PROFESSIONAL)
require_admin = require_role(ROLE_ADMIN)


def record_sign_in(db: Session, user: AuthUser) -> None:
    user.last_sign_in_at = datetime.utcnow()
    db.commit()
