"""Settings domain - runtime configuration (no-show grace period)"""

from .router import router

__all__ = ["router"]
