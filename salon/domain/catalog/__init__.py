"""Catalog domain - services offered by the salon"""

from .router import router

__all__ = ["router"]
