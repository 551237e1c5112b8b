"""Sales domain - orders, their items and payments"""

from .router import router

__all__ = ["router"]
