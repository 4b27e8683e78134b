"""Admin moderation and audit trail"""

from .router import router

__all__ = ["router"]
