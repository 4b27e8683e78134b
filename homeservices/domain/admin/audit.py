"""Admin audit trail - every admin mutation records who did what, from where"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ...models import AdminAction, Profile

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP, honouring the first hop of X-Forwarded-For behind a proxy"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def get_request_context(request: Request) -> RequestContext:
    user_agent = request.headers.get("user-agent")
    return RequestContext(ip_address=get_client_ip(request), user_agent=user_agent[:500] if user_agent else None)


def record_admin_action(
    db: Session,
    admin: Profile,
    action_type: str,
    context: RequestContext,
    target_type: Optional[str] = None,
    target_id: Optional[Any] = None,
    description: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> AdminAction:
    """Add an audit entry to the session. The caller commits it with the mutation it describes."""
    action = AdminAction(
        admin_id=admin.id,
        action_type=action_type,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        description=description,
        action_metadata=metadata,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
    )
    db.add(action)
    logger.info(f"📝 Admin {admin.id} {action_type} {target_type or ''} {target_id or ''}".rstrip())
    return action
