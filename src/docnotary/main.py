# src/docnotary/main.py
"""Main entry point for the docnotary relayer API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docnotary.api.v1 import documents_router, system_router
from docnotary.core.errors import (
    AllocationFailure,
    AlreadyExecuted,
    AlreadyOpened,
    DocumentNotFound,
    InvalidSignature,
    InvalidSignatureEncoding,
    MalformedRecord,
    RegistryError,
    Unauthorized,
)
from docnotary.core.settings import settings

logging.basicConfig(level=settings.log_level)

ERROR_STATUS: dict[type[RegistryError], int] = {
    DocumentNotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    AlreadyOpened: status.HTTP_409_CONFLICT,
    InvalidSignature: status.HTTP_401_UNAUTHORIZED,
    InvalidSignatureEncoding: status.HTTP_400_BAD_REQUEST,
    AlreadyExecuted: status.HTTP_409_CONFLICT,
    MalformedRecord: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AllocationFailure: status.HTTP_507_INSUFFICIENT_STORAGE,
}

# Initialize FastAPI app
app = FastAPI(
    title="docnotary API",
    description="Document notarization registry with presigned relaying",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(documents_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    """Translate registry failures into their stable error codes."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        content={"error": exc.code, "detail": exc.detail},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Document notarization registry with presigned relaying",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("docnotary.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
