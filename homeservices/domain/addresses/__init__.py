"""Customer address book"""

from .router import router

__all__ = ["router"]
