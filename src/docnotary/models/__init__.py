# src/docnotary/models/__init__.py
"""SQLAlchemy models for the registry's SQL storage backend."""

from .storage_cell import StorageCell

__all__ = ["StorageCell"]
