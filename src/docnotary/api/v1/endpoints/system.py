"""System endpoints describing the running registry."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from docnotary.api.v1.dependencies import RegistryDep
from docnotary.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
def get_config(registry: RegistryDep) -> dict[str, Any]:
    """Expose the public registry configuration relayers need to build requests."""
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "storage_strategy": registry.strategy.name,
        "program_id": settings.program_id,
        "digest": "blake3",
        "signature_scheme": "ed25519",
    }
