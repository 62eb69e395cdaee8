"""API router exports"""

from .health import router as health_router
from .threads import router as threads_router

__all__ = ["health_router", "threads_router"]
