"""Replay protection for presigned operations."""

from __future__ import annotations

from docnotary.core.errors import AlreadyExecuted
from docnotary.storage.addressing import StorageStrategy
from docnotary.storage.backend import StorageBackend

_CONSUMED_MARKER = b"\x01"


class ReplayGuard:
    """Records consumed authorization digests so each executes at most once.

    Digests live in the registry's own storage, so a consumed mark written
    inside a failing transaction is rolled back with the rest of it. Entries
    never expire.
    """

    def __init__(self, backend: StorageBackend, strategy: StorageStrategy) -> None:
        self._backend = backend
        self._strategy = strategy

    def is_consumed(self, digest: bytes) -> bool:
        """Return True if ``digest`` has already authorized an operation."""
        return self._backend.read(self._strategy.resolve_execution(digest)) is not None

    def check_and_consume(self, digest: bytes) -> None:
        """Mark ``digest`` as consumed.

        Raises:
            AlreadyExecuted: If the digest was consumed before. State is untouched.
        """
        address = self._strategy.resolve_execution(digest)
        with self._backend.transaction():
            if self._backend.read(address) is not None:
                raise AlreadyExecuted()
            self._strategy.allocate(self._backend, address, len(_CONSUMED_MARKER))
            self._backend.write(address, _CONSUMED_MARKER)
