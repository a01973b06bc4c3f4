# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from docnotary.api.v1.dependencies import get_registry
from docnotary.db.session import Base
from docnotary.main import app as fastapi_app
from docnotary.services.crypto import CryptoService
from docnotary.services.registry import DocumentRegistry, create_registry

TEST_DB_URL = "sqlite://"
TEST_PROGRAM_ID = bytes.fromhex("11" * 32)
CLOCK_START = 1_700_000_000

# Opaque payload: a link followed by a sha256 checksum of the linked page.
DATA_1 = bytes.fromhex(
    "68747470733a2f2f656d6e3137382e6769746875622e696f2f6f6e6c696e652d746f6f6c732f"
    "7368613235362e68746d6ce2c1fcbd5b4befacb2ebdc5a7b6e6da86ad5b2a1ebb50371a546d19746"
    "7165c9"
)
DATA_2 = b"\x78" + DATA_1[1:]
DATA_3 = b"\x88" + DATA_1[1:]


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: int = CLOCK_START) -> None:
        self.current = start

    def now(self) -> int:
        value = self.current
        self.current += 1
        return value


@dataclass(frozen=True)
class Identity:
    private_key: bytes
    public_key: bytes


def _generate_identity() -> Identity:
    private_key, public_key = CryptoService.generate_key_pair()
    return Identity(private_key=private_key, public_key=public_key)


@pytest.fixture(scope="session")
def engine() -> Iterator[Engine]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture(
    params=[
        ("memory", "mapping"),
        ("memory", "segmented"),
        ("sql", "mapping"),
        ("sql", "segmented"),
    ],
    ids=lambda param: f"{param[0]}-{param[1]}",
)
def registry(
    request: pytest.FixtureRequest,
    session_factory: sessionmaker[Session],
    clock: SteppingClock,
) -> DocumentRegistry:
    """A registry for every backend/strategy combination."""
    backend, strategy = request.param
    return create_registry(
        backend=backend,
        strategy=strategy,
        program_id=TEST_PROGRAM_ID,
        session_factory=session_factory,
        clock=clock,
    )


@pytest.fixture()
def memory_registry(clock: SteppingClock) -> DocumentRegistry:
    return create_registry(
        backend="memory",
        strategy="segmented",
        program_id=TEST_PROGRAM_ID,
        clock=clock,
    )


@pytest.fixture()
def sender() -> Identity:
    return _generate_identity()


@pytest.fixture()
def receiver() -> Identity:
    return _generate_identity()


@pytest.fixture()
def stranger() -> Identity:
    return _generate_identity()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, memory_registry: DocumentRegistry) -> Iterator[TestClient]:
    app.dependency_overrides[get_registry] = lambda: memory_registry
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_registry, None)
