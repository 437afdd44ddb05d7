import uuid
from datetime import datetime, timezone

import pytest

from waitlist.db.session import init_store
from waitlist.models.subscriber import EmailSubscriber, SubscriberStatus


def _record(email: str, status: SubscriberStatus = SubscriberStatus.active) -> EmailSubscriber:
    return EmailSubscriber(
        email=email,
        source="website",
        subscribed_at=datetime.now(timezone.utc),
        status=status,
        ip_address="unknown",
        user_agent="unknown",
    )


@pytest.mark.anyio("asyncio")
async def test_insert_then_find_active() -> None:
    store = init_store("sqlite+aiosqlite:///:memory:")
    await store.create_schema()
    try:
        assert await store.find_active("new@example.com") is None

        new_id = await store.insert(_record("new@example.com"))
        assert isinstance(new_id, uuid.UUID)

        found = await store.find_active("new@example.com")
        assert found is not None
        assert found.id == new_id
        assert found.status == SubscriberStatus.active
        assert await store.find_active("NEW@example.com") is None
    finally:
        await store.dispose()


@pytest.mark.anyio("asyncio")
async def test_find_active_ignores_unsubscribed() -> None:
    store = init_store("sqlite+aiosqlite:///:memory:")
    await store.create_schema()
    try:
        await store.insert(_record("gone@example.com", SubscriberStatus.unsubscribed))
        assert await store.find_active("gone@example.com") is None
    finally:
        await store.dispose()


@pytest.mark.anyio("asyncio")
async def test_table_allows_repeated_email_rows() -> None:
    store = init_store("sqlite+aiosqlite:///:memory:")
    await store.create_schema()
    try:
        await store.insert(_record("race@example.com"))
        await store.insert(_record("race@example.com"))
        await store.insert(_record("race@example.com", SubscriberStatus.unsubscribed))
        assert await store.count_by_status() == {"active": 2, "unsubscribed": 1}
        assert (await store.find_active("race@example.com")).email == "race@example.com"
    finally:
        await store.dispose()


@pytest.mark.anyio("asyncio")
async def test_count_by_status_empty() -> None:
    store = init_store("sqlite+aiosqlite:///:memory:")
    await store.create_schema()
    try:
        assert await store.count_by_status() == {"active": 0, "unsubscribed": 0}
    finally:
        await store.dispose()
