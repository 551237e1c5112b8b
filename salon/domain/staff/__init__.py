"""Staff domain - employees, managers and their permission flags"""

from .router import router

__all__ = ["router"]
