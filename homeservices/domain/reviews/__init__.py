"""Reviews of completed bookings"""

from .router import router

__all__ = ["router"]
