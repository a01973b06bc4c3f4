# src/docnotary/api/v1/endpoints/documents.py
"""Document endpoints: read access and relayed presigned operations."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path, status

from docnotary.api.v1.dependencies import RegistryDep, decode_identity
from docnotary.codec import (
    U32_MAX,
    Document,
    decode_document_authorization,
    decode_opened_at_authorization,
)
from docnotary.core.errors import MalformedRecord
from docnotary.schemas.document import (
    DocumentOut,
    DocumentsCountOut,
    EncodedPreSignedCreate,
    ErrorOut,
    PreSignedDocumentCreate,
    PreSignedOpenedAtCreate,
)
from docnotary.services.registry import DocumentEntry

router = APIRouter(prefix="/documents", tags=["documents"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorOut},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorOut},
    status.HTTP_404_NOT_FOUND: {"model": ErrorOut},
    status.HTTP_409_CONFLICT: {"model": ErrorOut},
}


def _serialize_document(receiver: bytes, index: int, document: Document) -> DocumentOut:
    return DocumentOut(
        receiver=receiver.hex(),
        index=index,
        sender=document.sender.hex(),
        data=document.data.hex(),
        sent_at=document.sent_at,
        opened_at=document.opened_at,
    )


def _serialize_entry(entry: DocumentEntry) -> DocumentOut:
    return _serialize_document(entry.receiver, entry.index, entry.document)


@router.post(
    "/presigned",
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def set_presigned_document(request: PreSignedDocumentCreate, registry: RegistryDep) -> DocumentOut:
    """Relay a document creation signed by its sender."""
    entry = registry.set_presigned_document(
        sender=request.sender_bytes,
        receiver=request.receiver_bytes,
        data=request.data_bytes,
        nonce=request.nonce,
        signature=request.signature_bytes,
    )
    return _serialize_entry(entry)


@router.post("/presigned/opened", responses=_ERROR_RESPONSES)
def set_presigned_opened_at(request: PreSignedOpenedAtCreate, registry: RegistryDep) -> DocumentOut:
    """Relay an open stamp signed by the document's receiver."""
    entry = registry.set_presigned_opened_at(
        receiver=request.receiver_bytes,
        index=request.index,
        nonce=request.nonce,
        signature=request.signature_bytes,
    )
    return _serialize_entry(entry)


@router.post(
    "/presigned/encoded",
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def set_encoded_presigned_document(
    request: EncodedPreSignedCreate, registry: RegistryDep
) -> DocumentOut:
    """Relay a document creation whose signed payload arrives in its wire encoding."""
    try:
        payload = decode_document_authorization(request.payload_bytes)
    except MalformedRecord as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err.detail) from err
    entry = registry.set_presigned_document(
        sender=payload.sender,
        receiver=payload.receiver,
        data=payload.data,
        nonce=payload.nonce,
        signature=request.signature_bytes,
    )
    return _serialize_entry(entry)


@router.post("/presigned/opened/encoded", responses=_ERROR_RESPONSES)
def set_encoded_presigned_opened_at(
    request: EncodedPreSignedCreate, registry: RegistryDep
) -> DocumentOut:
    """Relay an open stamp whose signed payload arrives in its wire encoding."""
    try:
        payload = decode_opened_at_authorization(request.payload_bytes)
    except MalformedRecord as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err.detail) from err
    entry = registry.set_presigned_opened_at(
        receiver=payload.receiver,
        index=payload.index,
        nonce=payload.nonce,
        signature=request.signature_bytes,
    )
    return _serialize_entry(entry)


@router.get("/{receiver}/count")
def get_documents_count(receiver: str, registry: RegistryDep) -> DocumentsCountOut:
    """Return how many documents were ever sent to ``receiver``."""
    receiver_bytes = decode_identity(receiver)
    return DocumentsCountOut(
        receiver=receiver_bytes.hex(),
        documents_count=registry.get_documents_count(receiver_bytes),
    )


@router.get("/{receiver}")
def get_documents(receiver: str, registry: RegistryDep) -> list[DocumentOut]:
    """Return every document addressed to ``receiver`` in index order."""
    receiver_bytes = decode_identity(receiver)
    documents = registry.get_documents(receiver_bytes)
    return [
        _serialize_document(receiver_bytes, index, document)
        for index, document in enumerate(documents)
    ]


@router.get("/{receiver}/{index}", responses={status.HTTP_404_NOT_FOUND: {"model": ErrorOut}})
def get_document(
    receiver: str,
    registry: RegistryDep,
    index: int = Path(..., ge=0, le=U32_MAX),
) -> DocumentOut:
    """Return document ``index`` of ``receiver``."""
    receiver_bytes = decode_identity(receiver)
    return _serialize_document(receiver_bytes, index, registry.get_document(receiver_bytes, index))
