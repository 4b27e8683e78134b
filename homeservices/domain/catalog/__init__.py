"""Service catalog - public browsing of services and professionals"""

from .router import router

__all__ = ["router"]
