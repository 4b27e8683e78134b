"""Payments - gateway orders, checkout verification, webhooks and earnings"""

from .router import router

__all__ = ["router"]
