"""
Outcome Recorder

Turns a send outcome into the record's terminal state and, for
retryable failures, builds the next attempt of the retry chain.
"""
import json
from datetime import datetime, timezone
from typing import Any, Callable

from hookrelay.models.webhook import WebhookRecord, WebhookStatus
from hookrelay.services.backoff import retry_delay
from hookrelay.services.sender import HttpResponse, Outcome, TransportFailure


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_json_safely(raw: bytes) -> Any | None:
    """Parse a response body, returning None for anything that is not JSON."""
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def is_retryable(outcome: Outcome) -> bool:
    """Server errors and transport failures are transient; 4xx is permanent."""
    if isinstance(outcome, HttpResponse):
        return outcome.status_code >= 500
    return True


class FibonacciRepeat:
    """Schedule a successor attempt after a Fibonacci-minute delay."""

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    def successor(self, record: WebhookRecord) -> WebhookRecord:
        now = self.clock()
        attempt = (record.attempt or 0) + 1
        return WebhookRecord(
            url=record.url,
            body=record.body,
            status=WebhookStatus.PENDING,
            created_at=now,
            attempt=attempt,
            start_at=now + retry_delay(attempt),
            repeated_from=record.id,
        )


class NoRepeat:
    """Plain delivery: failures are final."""

    def successor(self, record: WebhookRecord) -> None:
        return None


class OutcomeRecorder:
    """Applies send outcomes to claimed records."""

    def __init__(self, repeat: FibonacciRepeat | NoRepeat | None = None):
        self.repeat = repeat if repeat is not None else FibonacciRepeat()

    def apply(self, record: WebhookRecord, outcome: Outcome) -> WebhookRecord | None:
        """
        Record the outcome on a claimed record.

        Args:
            record: Pending record claimed by the current transaction
            outcome: Result returned by the sender

        Returns:
            A new pending successor to insert in the same transaction,
            or None when no retry is due
        """
        if isinstance(outcome, HttpResponse):
            ok = 200 <= outcome.status_code < 300
            record.status = WebhookStatus.SUCCESS if ok else WebhookStatus.ERROR
            record.response_status_code = outcome.status_code
            record.response = parse_json_safely(outcome.body)
        elif isinstance(outcome, TransportFailure):
            record.status = WebhookStatus.ERROR
            record.response_status_code = None
            record.response = {"error": outcome.message}
        else:
            raise TypeError(f"Unknown outcome: {outcome!r}")

        if record.status is WebhookStatus.ERROR and is_retryable(outcome):
            return self.repeat.successor(record)
        return None
