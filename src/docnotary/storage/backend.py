"""Storage backends holding addressed registry cells.

A backend stores opaque byte records under byte addresses. Every registry
operation runs inside :meth:`StorageBackend.transaction`; writes made inside
it become visible together or not at all.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from threading import RLock
from typing import NamedTuple, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from docnotary.core.errors import AllocationFailure
from docnotary.models import StorageCell


class StorageBackend(Protocol):
    """Interface the registry uses to persist cells."""

    def read(self, address: bytes) -> bytes | None: ...

    def write(self, address: bytes, data: bytes) -> None: ...

    def allocate(self, address: bytes, size: int) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...

    def addresses(self) -> list[bytes]: ...


class _Cell(NamedTuple):
    data: bytes
    size: int | None


def _check_write(address: bytes, cell: _Cell | None, data: bytes, require_allocation: bool) -> None:
    if cell is None:
        if require_allocation:
            raise AllocationFailure(f"Cell {address.hex()} was never allocated")
        return
    if cell.size is not None and len(data) != cell.size:
        raise AllocationFailure(
            f"Cell {address.hex()} holds {cell.size} bytes, refusing a {len(data)}-byte write"
        )


def _check_allocate(address: bytes, existing: bool, size: int) -> None:
    if size < 0:
        raise ValueError("Cell size must be non-negative")
    if existing:
        raise AllocationFailure(f"Cell {address.hex()} is already allocated")


class MemoryStorageBackend:
    """In-process backend; a transaction restores a snapshot when it fails."""

    def __init__(self, *, require_allocation: bool = False) -> None:
        self.require_allocation = require_allocation
        self._cells: dict[bytes, _Cell] = {}
        self._depth = 0
        self._lock = RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth:
                # Nested scopes join the outermost transaction.
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            snapshot = dict(self._cells)
            self._depth = 1
            try:
                yield
            except BaseException:
                self._cells = snapshot
                raise
            finally:
                self._depth = 0

    def read(self, address: bytes) -> bytes | None:
        cell = self._cells.get(bytes(address))
        return None if cell is None else cell.data

    def write(self, address: bytes, data: bytes) -> None:
        address = bytes(address)
        with self._lock:
            cell = self._cells.get(address)
            _check_write(address, cell, data, self.require_allocation)
            self._cells[address] = _Cell(bytes(data), cell.size if cell else None)

    def allocate(self, address: bytes, size: int) -> None:
        address = bytes(address)
        with self._lock:
            _check_allocate(address, address in self._cells, size)
            self._cells[address] = _Cell(bytes(size), size)

    def addresses(self) -> list[bytes]:
        return sorted(self._cells)


class SqlStorageBackend:
    """SQLAlchemy backend persisting cells in the ``storage_cell`` table.

    Each outermost transaction owns one session which is committed on success
    and rolled back when an exception escapes.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        require_allocation: bool = False,
    ) -> None:
        self.require_allocation = require_allocation
        self._session_factory = session_factory
        self._session: Session | None = None
        self._lock = RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._session is not None:
                yield
                return

            session = self._session_factory()
            self._session = session
            try:
                yield
                session.commit()
            except BaseException:
                session.rollback()
                raise
            finally:
                self._session = None
                session.close()

    def _current(self) -> Session:
        if self._session is None:
            raise RuntimeError("SqlStorageBackend used outside of a transaction")
        return self._session

    def _get(self, address: bytes) -> StorageCell | None:
        return self._current().get(StorageCell, bytes(address))

    def _insert(self, cell: StorageCell) -> None:
        session = self._current()
        address = bytes(cell.address)
        session.add(cell)
        try:
            session.flush()
        except IntegrityError as err:
            # Another process created the same cell after our read.
            raise AllocationFailure(f"Cell {address.hex()} is already allocated") from err

    def read(self, address: bytes) -> bytes | None:
        with self.transaction():
            cell = self._get(address)
            return None if cell is None else bytes(cell.data)

    def write(self, address: bytes, data: bytes) -> None:
        address = bytes(address)
        with self.transaction():
            row = self._get(address)
            cell = None if row is None else _Cell(bytes(row.data), row.size)
            _check_write(address, cell, data, self.require_allocation)
            if row is None:
                self._insert(StorageCell(address=address, data=bytes(data), size=None))
            else:
                row.data = bytes(data)
                self._current().flush()

    def allocate(self, address: bytes, size: int) -> None:
        address = bytes(address)
        with self.transaction():
            _check_allocate(address, self._get(address) is not None, size)
            self._insert(StorageCell(address=address, data=bytes(size), size=size))

    def addresses(self) -> list[bytes]:
        with self.transaction():
            rows = self._current().scalars(select(StorageCell.address)).all()
            return sorted(bytes(row) for row in rows)
