"""Registry error taxonomy.

Every failure mode of the registry maps to exactly one exception class with a
stable ``code`` that API shims surface verbatim.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry failures."""

    code: str = "registry_error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)


class DocumentNotFound(RegistryError):
    """The document does not exist."""

    code = "document_not_found"


class Unauthorized(RegistryError):
    """This can change only receiver of the document."""

    code = "unauthorized"


class AlreadyOpened(RegistryError):
    """The document was already opened."""

    code = "already_opened"


class InvalidSignature(RegistryError):
    """Signature is not valid."""

    code = "invalid_signature"


class InvalidSignatureEncoding(RegistryError):
    """Signature must be a 64-byte Ed25519 signature."""

    code = "invalid_signature_encoding"


class AlreadyExecuted(RegistryError):
    """A transaction with the same parameters was already executed."""

    code = "already_executed"


class MalformedRecord(RegistryError):
    """Stored record could not be decoded."""

    code = "malformed_record"


class AllocationFailure(RegistryError):
    """Storage cell could not be allocated."""

    code = "allocation_failure"


ALL_ERRORS: tuple[type[RegistryError], ...] = (
    DocumentNotFound,
    Unauthorized,
    AlreadyOpened,
    InvalidSignature,
    InvalidSignatureEncoding,
    AlreadyExecuted,
    MalformedRecord,
    AllocationFailure,
)
