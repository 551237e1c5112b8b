"""Clients domain - client records and self-service"""

from .router import router

__all__ = ["router"]
