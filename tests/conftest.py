"""Shared fixtures: a throwaway SQLite database and a controllable clock."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import select

from hookrelay.database import create_engine_from_url, create_session_factory
from hookrelay.models.base import Base
from hookrelay.models.webhook import WebhookRecord, WebhookStatus


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'hookrelay.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def add_records(session_factory, clock):
    """Insert records directly, bypassing the service layer."""

    async def _add(*records: WebhookRecord) -> list[WebhookRecord]:
        async with session_factory() as session:
            for record in records:
                if record.created_at is None:
                    record.created_at = clock()
                if record.status is None:
                    record.status = WebhookStatus.PENDING
            session.add_all(records)
            await session.commit()
        return list(records)

    return _add


@pytest.fixture
def all_records(session_factory):
    """Read every record ordered by id."""

    async def _all() -> list[WebhookRecord]:
        async with session_factory() as session:
            result = await session.execute(select(WebhookRecord).order_by(WebhookRecord.id))
            return list(result.scalars().all())

    return _all
