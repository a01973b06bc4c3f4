"""Shared API dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status

from docnotary.core.settings import settings
from docnotary.db.session import SessionLocal, create_tables
from docnotary.services.crypto import CryptoService
from docnotary.services.registry import DocumentRegistry, create_registry


@lru_cache(maxsize=1)
def get_registry() -> DocumentRegistry:
    """Return the process-wide registry built from settings."""
    if settings.storage_backend == "sql":
        create_tables()
    return create_registry(
        backend=settings.storage_backend,
        strategy=settings.storage_strategy,
        program_id=settings.program_id_bytes,
        session_factory=SessionLocal,
    )


def decode_identity(encoded: str) -> bytes:
    """Decode a hex or base64 identity from a path parameter.

    Raises:
        HTTPException: If the value is not a 32-byte public key.
    """
    try:
        return CryptoService.validate_and_decode_pubkey(encoded)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err


# Type alias for registry dependency
RegistryDep = Annotated[DocumentRegistry, Depends(get_registry)]
