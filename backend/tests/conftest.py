import asyncio
import os
import uuid
from collections.abc import Generator

import pytest

# Keep pytest output high-signal by disabling outbound Sentry capture in tests.
os.environ["SENTRY_DSN"] = ""

from fastapi.testclient import TestClient

from waitlist.db.session import get_store, init_store
from waitlist.main import app
from waitlist.models.subscriber import EmailSubscriber, SubscriberStatus
from waitlist.services.store import SqlSubscriberStore


class InMemoryStore:
    """Records every call so tests can assert on reads and writes."""

    def __init__(self, records: list[EmailSubscriber] | None = None):
        self.records = list(records or [])
        self.reads: list[str] = []
        self.inserts: list[EmailSubscriber] = []

    async def find_active(self, email: str) -> EmailSubscriber | None:
        self.reads.append(email)
        for record in self.records:
            if record.email == email and record.status == SubscriberStatus.active:
                return record
        return None

    async def insert(self, record: EmailSubscriber) -> uuid.UUID:
        self.inserts.append(record)
        self.records.append(record)
        return record.id


class FailingStore:
    def __init__(self, message: str = "connection refused: db.internal:5432 (password=hunter2)"):
        self.message = message
        self.inserts: list[EmailSubscriber] = []

    async def find_active(self, email: str) -> EmailSubscriber | None:
        raise RuntimeError(self.message)

    async def insert(self, record: EmailSubscriber) -> uuid.UUID:
        self.inserts.append(record)
        raise RuntimeError(self.message)


class InsertFailingStore(FailingStore):
    """Reads succeed with no match; the write fails."""

    async def find_active(self, email: str) -> EmailSubscriber | None:
        return None


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def sql_store() -> Generator[SqlSubscriberStore, None, None]:
    store = init_store("sqlite+aiosqlite:///:memory:")
    asyncio.run(store.create_schema())
    yield store
    asyncio.run(store.dispose())


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


def make_client(store) -> TestClient:
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def client(memory_store: InMemoryStore) -> Generator[TestClient, None, None]:
    test_client = make_client(memory_store)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def sql_client(sql_store: SqlSubscriberStore) -> Generator[TestClient, None, None]:
    test_client = make_client(sql_store)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_client(failing_store: FailingStore) -> Generator[TestClient, None, None]:
    test_client = make_client(failing_store)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def insert_failing_store() -> InsertFailingStore:
    return InsertFailingStore()


@pytest.fixture
def insert_failing_client(insert_failing_store: InsertFailingStore) -> Generator[TestClient, None, None]:
    test_client = make_client(insert_failing_store)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()
