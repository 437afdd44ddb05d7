from __future__ import annotations

import uuid
from typing import Protocol

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from waitlist.db.base import Base
from waitlist.models.subscriber import EmailSubscriber, SubscriberStatus


class SubscriberStore(Protocol):
    """Persistence contract used by the subscribe flow."""

    async def find_active(self, email: str) -> EmailSubscriber | None: ...

    async def insert(self, record: EmailSubscriber) -> uuid.UUID: ...


class SqlSubscriberStore:
    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.engine = engine
        self.session_factory = session_factory or async_sessionmaker(
            engine, expire_on_commit=False, autoflush=False, class_=AsyncSession
        )

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def find_active(self, email: str) -> EmailSubscriber | None:
        async with self.session_factory() as session:
            return await session.scalar(
                sa.select(EmailSubscriber)
                .where(EmailSubscriber.email == email)
                .where(EmailSubscriber.status == SubscriberStatus.active)
                .limit(1)
            )

    async def insert(self, record: EmailSubscriber) -> uuid.UUID:
        if record.id is None:
            record.id = uuid.uuid4()
        async with self.session_factory() as session:
            session.add(record)
            await session.commit()
        return record.id

    async def list_subscribers(self, status: SubscriberStatus | None = None) -> list[EmailSubscriber]:
        query = sa.select(EmailSubscriber).order_by(EmailSubscriber.subscribed_at, EmailSubscriber.email)
        if status is not None:
            query = query.where(EmailSubscriber.status == status)
        async with self.session_factory() as session:
            return list((await session.scalars(query)).all())

    async def count_by_status(self) -> dict[str, int]:
        async with self.session_factory() as session:
            result = await session.execute(
                sa.select(EmailSubscriber.status, sa.func.count()).group_by(EmailSubscriber.status)
            )
            counts = {status.value: 0 for status in SubscriberStatus}
            for status, total in result.all():
                key = status.value if isinstance(status, SubscriberStatus) else str(status)
                counts[key] = int(total)
            return counts

    async def dispose(self) -> None:
        await self.engine.dispose()
