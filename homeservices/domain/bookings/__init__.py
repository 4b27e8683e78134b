"""Booking lifecycle - creation, cancellation and status changes"""

from .router import router

__all__ = ["router"]
