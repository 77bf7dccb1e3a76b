"""
Webhook Service

Enqueues webhook records and reports queue status.
"""
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.models.webhook import WebhookRecord, WebhookStatus
from hookrelay.services.outcome_recorder import Clock, utcnow


DEFAULT_LIST_LIMIT = 100


def join_url(base_url: str, path: str) -> str:
    """Append a path to a base URL with exactly one slash between them."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass
class WebhookCollection:
    """A page of recent records plus status counts over the whole table."""
    total_counts: dict[str, int]
    items: list[WebhookRecord]

    @property
    def count(self) -> int:
        return len(self.items)


class WebhookService:
    """Service for enqueueing and listing webhook records."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def _pending(self, url: str, body: Any) -> WebhookRecord:
        return WebhookRecord(
            url=url,
            body=body,
            status=WebhookStatus.PENDING,
            created_at=self.clock(),
        )

    async def enqueue(self, url: str, body: Any) -> WebhookRecord:
        """
        Create a PENDING record that is immediately eligible for delivery.

        Args:
            url: Absolute destination URL
            body: JSON-serializable payload

        Returns:
            Newly created WebhookRecord
        """
        record = self._pending(url, body)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def broadcast(self, body: Any, path: str, base_urls: list[str]) -> list[WebhookRecord]:
        """
        Enqueue the same payload for every base URL.

        Args:
            body: JSON-serializable payload
            path: Path appended to each base URL
            base_urls: Target base URLs

        Returns:
            One new record per base URL, in the same order
        """
        records = [self._pending(join_url(base, path), body) for base in base_urls]
        self.db.add_all(records)
        await self.db.commit()
        for record in records:
            await self.db.refresh(record)
        return records

    async def count_by_status(self) -> dict[str, int]:
        """Count records per status across the whole table."""
        stmt = select(WebhookRecord.status, func.count()).group_by(WebhookRecord.status)
        result = await self.db.execute(stmt)
        return {status.value.lower(): count for status, count in result.all()}

    async def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> WebhookCollection:
        """
        Get the most recent records with the status histogram.

        The two reads are independent, so counts may briefly disagree
        with the returned items while workers are committing.
        """
        counts = await self.count_by_status()

        stmt = select(WebhookRecord).order_by(WebhookRecord.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        items = list(result.scalars().all())

        return WebhookCollection(total_counts=counts, items=items)
