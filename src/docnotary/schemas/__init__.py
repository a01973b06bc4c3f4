"""Pydantic schemas for the docnotary API."""

from .document import (
    DocumentOut,
    DocumentsCountOut,
    EncodedPreSignedCreate,
    ErrorOut,
    PreSignedDocumentCreate,
    PreSignedOpenedAtCreate,
)

__all__ = [
    "DocumentOut",
    "DocumentsCountOut",
    "EncodedPreSignedCreate",
    "ErrorOut",
    "PreSignedDocumentCreate",
    "PreSignedOpenedAtCreate",
]
