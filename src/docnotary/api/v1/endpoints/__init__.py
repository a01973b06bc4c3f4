"""API endpoint modules for version 1."""

from .documents import router as documents_router
from .system import router as system_router

__all__ = [
    "documents_router",
    "system_router",
]
