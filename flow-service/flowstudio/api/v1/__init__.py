"""
API v1 endpoints.
"""

from .health import router as health_router
from .generate import router as generate_router

__all__ = ["health_router", "generate_router"]
