"""Version 1 API endpoints."""

from .endpoints import documents_router, system_router

__all__ = [
    "documents_router",
    "system_router",
]
