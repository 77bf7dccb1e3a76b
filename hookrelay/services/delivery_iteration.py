"""
Webhook delivery iteration.

One call claims a batch of due records, sends them concurrently, records
every outcome and commits. A scheduler calls it repeatedly, forever.
"""
import asyncio
from functools import partial

from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import WebhookRecord, WebhookStatus
from hookrelay.routes.metrics import (
    track_batch_claimed,
    track_iteration_failure,
    track_webhook_delivery,
    track_webhook_retry,
)
from hookrelay.sentry_config import capture_exception
from hookrelay.services.outcome_recorder import OutcomeRecorder
from hookrelay.services.sender import WebhookSender
from hookrelay.services.webhook_store import (
    DEFAULT_BATCH_SIZE,
    ClaimedBatch,
    SqlAlchemyWebhookStore,
)

logger = get_logger(component="delivery_iteration")


async def _pause(seconds: float, stop: asyncio.Event | None) -> None:
    """Sleep, waking early once `stop` is set."""
    if stop is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


class WebhookDeliveryIteration:
    """Claim -> send -> record -> commit, once per call."""

    def __init__(
        self,
        store: SqlAlchemyWebhookStore,
        sender: WebhookSender,
        recorder: OutcomeRecorder,
        batch_size: int = DEFAULT_BATCH_SIZE,
        idle_seconds: float = 1.0,
        error_cooldown_seconds: float = 5.0,
    ):
        self.store = store
        self.sender = sender
        self.recorder = recorder
        self.batch_size = batch_size
        self.idle_seconds = idle_seconds
        self.error_cooldown_seconds = error_cooldown_seconds

    async def _deliver(self, batch: ClaimedBatch, record: WebhookRecord) -> tuple[WebhookStatus, bool]:
        outcome = await self.sender.send(record)
        successor = self.recorder.apply(record, outcome)

        if successor is not None:
            batch.add(successor)
            logger.info(
                "webhook_retry_scheduled",
                webhook_id=record.id,
                attempt=successor.attempt,
                start_at=successor.start_at.isoformat(),
            )
        return record.status, successor is not None

    async def _process(self, batch: ClaimedBatch, results: list) -> None:
        # All sends must finish before the enclosing transaction commits
        results.extend(
            await asyncio.gather(*(self._deliver(batch, record) for record in batch))
        )

    async def run(self, stop: asyncio.Event | None = None) -> int:
        """
        Run one delivery iteration.

        Args:
            stop: Optional signal that cuts the trailing idle pause short

        Returns:
            Number of records processed
        """
        logger.info("webhook_iteration_started")

        results: list[tuple[WebhookStatus, bool]] = []
        processed = await self.store.with_pending_batch(
            self.batch_size, partial(self._process, results=results)
        )

        # Only committed outcomes are counted
        track_batch_claimed(processed)
        for status, retried in results:
            track_webhook_delivery(status.value)
            if retried:
                track_webhook_retry()

        logger.info("webhook_iteration_finished", processed=processed)
        await _pause(self.idle_seconds, stop)
        return processed

    async def on_exception(self, exc: BaseException, stop: asyncio.Event | None = None) -> None:
        """Report a failed iteration and cool down before the next one."""
        logger.error("webhook_iteration_failed", error=str(exc), exc_info=exc)
        capture_exception(exc)
        track_iteration_failure()
        await _pause(self.error_cooldown_seconds, stop)
