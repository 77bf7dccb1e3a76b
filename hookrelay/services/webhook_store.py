"""
Webhook claim store.

Claims due pending records under FOR UPDATE SKIP LOCKED so any number of
workers can drain the same table without processing a row twice. SQLite
renders no lock clause, so there the claim transaction takes the database
write lock up front and competing workers wait for it. All changes made
while processing a batch commit or roll back together.
"""
from datetime import datetime
from typing import Awaitable, Callable, Iterator

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hookrelay.database import WRITE_LOCK
from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import WebhookRecord, WebhookStatus
from hookrelay.services.outcome_recorder import Clock, utcnow


DEFAULT_BATCH_SIZE = 100

logger = get_logger(component="webhook_store")


def claim_statement(now: datetime, limit: int = DEFAULT_BATCH_SIZE) -> Select:
    """Select up to `limit` due pending records, skipping rows locked elsewhere."""
    return (
        select(WebhookRecord)
        .where(
            WebhookRecord.status == WebhookStatus.PENDING,
            or_(WebhookRecord.start_at.is_(None), WebhookRecord.start_at <= now),
        )
        .limit(limit)
        .with_for_update(skip_locked=True)
    )


class ClaimedBatch:
    """Records locked by the current transaction."""

    def __init__(self, session: AsyncSession, records: list[WebhookRecord]):
        self._session = session
        self.records = records

    def add(self, record: WebhookRecord) -> None:
        """Insert a new record as part of the batch transaction."""
        self._session.add(record)

    def __iter__(self) -> Iterator[WebhookRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


BatchAction = Callable[[ClaimedBatch], Awaitable[None]]


class SqlAlchemyWebhookStore:
    """Transactional access to the webhook_records queue."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def with_pending_batch(
        self,
        limit: int,
        action: BatchAction,
    ) -> int:
        """
        Run `action` over a batch of claimed records inside one transaction.

        The transaction commits when `action` returns. If it raises, or the
        task is cancelled, everything rolls back and the claimed records stay
        pending for a later claim.

        Args:
            limit: Maximum number of records to claim
            action: Coroutine function receiving the ClaimedBatch

        Returns:
            Number of records claimed
        """
        async with self.session_factory() as session:
            async with session.begin():
                await session.connection(execution_options={WRITE_LOCK: True})
                result = await session.execute(claim_statement(self.clock(), limit))
                batch = ClaimedBatch(session, list(result.scalars().all()))
                logger.info("webhook_batch_claimed", count=len(batch))

                await action(batch)

        return len(batch)
