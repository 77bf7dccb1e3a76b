"""
Webhook Sender

Performs one outbound POST per record. Transport errors are returned
as values so one failing target never aborts a batch.
"""
import json
from dataclasses import dataclass
from typing import Union

import httpx

from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import WebhookRecord


@dataclass(frozen=True)
class HttpResponse:
    """A response was received from the target."""
    status_code: int
    body: bytes


@dataclass(frozen=True)
class TransportFailure:
    """No response was received (DNS, TLS, timeout, connection reset...)."""
    message: str


Outcome = Union[HttpResponse, TransportFailure]


class WebhookSender:
    """Sends webhook records over a shared httpx client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def send(self, record: WebhookRecord) -> Outcome:
        """
        POST the record body to its URL.

        Never raises for transport problems; no retries happen here.

        Args:
            record: Record to deliver

        Returns:
            HttpResponse if the target answered, TransportFailure otherwise
        """
        log = get_logger(webhook_id=record.id, url=record.url)
        log.debug("webhook_sending")

        try:
            response = await self.client.post(
                record.url,
                content=json.dumps(record.body),
                headers={"Content-Type": "application/json"},
            )
        except Exception as e:
            message = str(e) or e.__class__.__name__
            log.warning("webhook_transport_failed", error=message)
            return TransportFailure(message=message)

        log.info("webhook_sent", status_code=response.status_code)
        return HttpResponse(status_code=response.status_code, body=response.content)
