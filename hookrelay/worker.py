"""
Webhook delivery worker for HookRelay.

Repeatedly runs the delivery iteration against the shared database.
Start as many processes as needed:

    python -m hookrelay.worker
"""
import asyncio
import signal

import httpx

from hookrelay.config import Settings, settings
from hookrelay.database import create_engine_from_url, create_session_factory
from hookrelay.logging_config import configure_logging, get_logger
from hookrelay.sentry_config import configure_sentry
from hookrelay.services.delivery_iteration import WebhookDeliveryIteration
from hookrelay.services.outcome_recorder import OutcomeRecorder
from hookrelay.services.sender import WebhookSender
from hookrelay.services.webhook_store import SqlAlchemyWebhookStore

logger = get_logger(component="worker")


def build_iteration(
    session_factory,
    client: httpx.AsyncClient,
    config: Settings = settings,
) -> WebhookDeliveryIteration:
    """Wire the delivery iteration from settings."""
    return WebhookDeliveryIteration(
        store=SqlAlchemyWebhookStore(session_factory),
        sender=WebhookSender(client),
        recorder=OutcomeRecorder(),
        batch_size=config.WEBHOOK_BATCH_SIZE,
        idle_seconds=config.WORKER_IDLE_SECONDS,
        error_cooldown_seconds=config.WORKER_ERROR_COOLDOWN_SECONDS,
    )


async def run_worker(iteration: WebhookDeliveryIteration, stop: asyncio.Event) -> None:
    """
    Run iterations until `stop` is set.

    An iteration that is already sending finishes before the loop exits.
    Failed iterations are reported and followed by a cooldown, which
    `stop` also cuts short.
    """
    logger.info("worker_started")
    while not stop.is_set():
        try:
            await iteration.run(stop)
        except Exception as e:
            await iteration.on_exception(e, stop)
    logger.info("worker_stopped")


async def main():
    """Run a standalone worker process until SIGINT/SIGTERM."""
    configure_logging()
    configure_sentry()

    engine = create_engine_from_url(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
            await run_worker(build_iteration(session_factory, client), stop)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
