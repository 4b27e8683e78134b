"""Professional workspace - offered services, availability, documents, bank accounts"""

from .router import router

__all__ = ["router"]
