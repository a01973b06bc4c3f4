"""Document registry: the public operations over receivers and their documents."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from threading import RLock

from sqlalchemy.orm import Session, sessionmaker

from docnotary.codec import (
    RECEIVER_SIZE,
    U32_MAX,
    Document,
    ReceiverDescriptor,
    decode_document,
    decode_receiver,
    encode_document,
    encode_receiver,
    require_identity,
)
from docnotary.core.errors import (
    AllocationFailure,
    AlreadyOpened,
    DocumentNotFound,
    InvalidSignature,
    RegistryError,
    Unauthorized,
)
from docnotary.db.time import Clock, SystemClock
from docnotary.services.replay import ReplayGuard
from docnotary.services.signing import (
    SignatureVerifier,
    calculate_document_hash,
    calculate_opened_at_hash,
)
from docnotary.storage.addressing import StorageStrategy, build_strategy
from docnotary.storage.backend import MemoryStorageBackend, SqlStorageBackend, StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEntry:
    """A document together with the key it is stored under."""

    receiver: bytes
    index: int
    document: Document


@dataclass(frozen=True)
class DocumentSet:
    """Emitted after a document has been committed."""

    sender: bytes
    receiver: bytes
    index: int
    data: bytes
    sent_at: int


@dataclass(frozen=True)
class OpenedAtSet:
    """Emitted after a document has been marked as opened."""

    receiver: bytes
    index: int
    opened_at: int


RegistryEvent = DocumentSet | OpenedAtSet
Subscriber = Callable[[RegistryEvent], None]


class DocumentRegistry:
    """Append-only per-receiver document lists with one-time open stamps.

    Every mutating call runs as one unit: preconditions are checked, storage
    is written and the replay guard updated inside a single backend
    transaction, so a failure leaves no trace. Calls are serialized by a
    registry-wide lock.
    """

    calculate_document_hash = staticmethod(calculate_document_hash)
    calculate_opened_at_hash = staticmethod(calculate_opened_at_hash)

    def __init__(
        self,
        backend: StorageBackend,
        strategy: StorageStrategy,
        *,
        clock: Clock | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        self.backend = backend
        self.strategy = strategy
        self._clock = clock or SystemClock()
        self._verifier = verifier or SignatureVerifier()
        self._replay = ReplayGuard(backend, strategy)
        self._lock = RLock()
        self._subscribers: list[Subscriber] = []

    # --- Events ---------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for committed events; returns an unsubscribe handle."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, events: list[RegistryEvent]) -> None:
        for event in events:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    logger.exception("Registry subscriber failed on %s", type(event).__name__)

    @contextmanager
    def _operation(self, name: str) -> Iterator[list[RegistryEvent]]:
        events: list[RegistryEvent] = []
        with self._lock:
            try:
                with self.backend.transaction():
                    yield events
            except RegistryError as exc:
                logger.warning("%s rejected: %s (%s)", name, exc.code, exc.detail)
                raise
            self._publish(events)

    # --- Storage helpers ------------------------------------------------------------

    def _load_receiver(self, receiver: bytes) -> ReceiverDescriptor | None:
        raw = self.backend.read(self.strategy.resolve_receiver(receiver))
        return None if raw is None else decode_receiver(raw)

    def _load_document(self, receiver: bytes, index: int) -> tuple[bytes, Document]:
        if index < 0:
            raise ValueError("Document index must be non-negative")
        descriptor = self._load_receiver(receiver)
        if descriptor is None or index >= descriptor.documents_counter:
            raise DocumentNotFound()
        address = self.strategy.resolve_document(receiver, index)
        raw = self.backend.read(address)
        if raw is None:
            raise DocumentNotFound()
        return address, decode_document(raw)

    def _append(
        self,
        events: list[RegistryEvent],
        sender: bytes,
        receiver: bytes,
        data: bytes,
    ) -> DocumentEntry:
        receiver_address = self.strategy.resolve_receiver(receiver)
        raw = self.backend.read(receiver_address)
        if raw is None:
            descriptor = ReceiverDescriptor()
            self.strategy.allocate(self.backend, receiver_address, RECEIVER_SIZE)
        else:
            descriptor = decode_receiver(raw)

        index = descriptor.documents_counter
        if index >= U32_MAX:
            raise AllocationFailure("Receiver document counter exhausted")

        document_address = self.strategy.resolve_document(receiver, index)
        if self.backend.read(document_address) is not None:
            raise AllocationFailure("Document slot is already initialized")

        document = Document(sender=sender, data=bytes(data), sent_at=self._clock.now())
        encoded = encode_document(document)
        self.strategy.allocate(self.backend, document_address, len(encoded))
        self.backend.write(document_address, encoded)
        self.backend.write(
            receiver_address,
            encode_receiver(ReceiverDescriptor(documents_counter=index + 1)),
        )

        events.append(
            DocumentSet(
                sender=sender,
                receiver=receiver,
                index=index,
                data=document.data,
                sent_at=document.sent_at,
            )
        )
        return DocumentEntry(receiver=receiver, index=index, document=document)

    def _open(self, events: list[RegistryEvent], receiver: bytes, index: int) -> DocumentEntry:
        address, document = self._load_document(receiver, index)
        if document.is_opened:
            raise AlreadyOpened()
        # 0 is the "not opened" sentinel and can never be stored as an open time.
        opened = replace(document, opened_at=max(self._clock.now(), 1))
        self.backend.write(address, encode_document(opened))
        events.append(OpenedAtSet(receiver=receiver, index=index, opened_at=opened.opened_at))
        return DocumentEntry(receiver=receiver, index=index, document=opened)

    def _authorize(self, signer: bytes, digest: bytes, signature: bytes) -> None:
        if not self._verifier.is_valid_signature(signer, digest, signature):
            raise InvalidSignature()
        self._replay.check_and_consume(digest)

    # --- Direct operations ----------------------------------------------------------

    def set_document(self, caller: bytes, receiver: bytes, data: bytes) -> DocumentEntry:
        """Append ``data`` to ``receiver``'s documents with ``caller`` as sender."""
        caller = require_identity(caller, "caller")
        receiver = require_identity(receiver, "receiver")
        with self._operation("set_document") as events:
            entry = self._append(events, caller, receiver, data)
        logger.info("Document %s/%d set by %s", receiver.hex(), entry.index, caller.hex())
        return entry

    def set_opened_at(self, caller: bytes, receiver: bytes, index: int) -> DocumentEntry:
        """Stamp the open time of a document; only its receiver may do so."""
        caller = require_identity(caller, "caller")
        receiver = require_identity(receiver, "receiver")
        with self._operation("set_opened_at") as events:
            if caller != receiver:
                raise Unauthorized()
            entry = self._open(events, receiver, index)
        logger.info("Document %s/%d opened", receiver.hex(), index)
        return entry

    # --- Presigned operations -------------------------------------------------------

    def set_presigned_document(
        self,
        sender: bytes,
        receiver: bytes,
        data: bytes,
        nonce: int,
        signature: bytes,
    ) -> DocumentEntry:
        """Create a document authorized by ``sender``'s signature, relayed by anyone."""
        sender = require_identity(sender, "sender")
        receiver = require_identity(receiver, "receiver")
        digest = calculate_document_hash(sender, receiver, data, nonce)
        with self._operation("set_presigned_document") as events:
            self._authorize(sender, digest, signature)
            entry = self._append(events, sender, receiver, data)
        logger.info(
            "Presigned document %s/%d set for sender %s", receiver.hex(), entry.index, sender.hex()
        )
        return entry

    def set_presigned_opened_at(
        self,
        receiver: bytes,
        index: int,
        nonce: int,
        signature: bytes,
    ) -> DocumentEntry:
        """Mark a document opened, authorized by the receiver's signature."""
        receiver = require_identity(receiver, "receiver")
        digest = calculate_opened_at_hash(receiver, index, nonce)
        with self._operation("set_presigned_opened_at") as events:
            self._authorize(receiver, digest, signature)
            entry = self._open(events, receiver, index)
        logger.info("Presigned open of document %s/%d", receiver.hex(), index)
        return entry

    # --- Reads ----------------------------------------------------------------------

    def is_valid_signature(self, signer: bytes, digest: bytes, signature: bytes) -> bool:
        return self._verifier.is_valid_signature(signer, digest, signature)

    def is_executed(self, digest: bytes) -> bool:
        with self._lock, self.backend.transaction():
            return self._replay.is_consumed(digest)

    def get_document(self, receiver: bytes, index: int) -> Document:
        receiver = require_identity(receiver, "receiver")
        with self._lock, self.backend.transaction():
            return self._load_document(receiver, index)[1]

    def get_documents(self, receiver: bytes) -> list[Document]:
        receiver = require_identity(receiver, "receiver")
        with self._lock, self.backend.transaction():
            descriptor = self._load_receiver(receiver)
            if descriptor is None:
                return []
            return [
                self._load_document(receiver, index)[1]
                for index in range(descriptor.documents_counter)
            ]

    def get_documents_count(self, receiver: bytes) -> int:
        receiver = require_identity(receiver, "receiver")
        with self._lock, self.backend.transaction():
            descriptor = self._load_receiver(receiver)
            return 0 if descriptor is None else descriptor.documents_counter


def create_registry(
    *,
    backend: str,
    strategy: str,
    program_id: bytes,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> DocumentRegistry:
    """Assemble a registry from configuration names.

    Args:
        backend: ``"sql"`` or ``"memory"``.
        strategy: ``"segmented"`` or ``"mapping"``.
        program_id: 32-byte namespace for segmented address derivation.
        session_factory: Session factory required by the SQL backend.
        clock: Optional clock override.
    """
    storage_strategy = build_strategy(strategy, program_id)
    storage: StorageBackend
    if backend == "memory":
        storage = MemoryStorageBackend(require_allocation=storage_strategy.requires_allocation)
    elif backend == "sql":
        if session_factory is None:
            raise ValueError("The SQL backend requires a session factory")
        storage = SqlStorageBackend(
            session_factory,
            require_allocation=storage_strategy.requires_allocation,
        )
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")
    return DocumentRegistry(storage, storage_strategy, clock=clock)
