"""Storage backends and address derivation strategies."""

from .addressing import (
    MappingStrategy,
    SegmentedStrategy,
    StorageStrategy,
    build_strategy,
    create_program_address,
    find_program_address,
)
from .backend import MemoryStorageBackend, SqlStorageBackend, StorageBackend

__all__ = [
    "MappingStrategy", "SegmentedStrategy", "StorageStrategy",
    "build_strategy", "create_program_address", "find_program_address",
    "MemoryStorageBackend", "SqlStorageBackend", "StorageBackend",
]
