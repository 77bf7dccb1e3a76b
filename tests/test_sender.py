"""Tests for WebhookSender."""
import json
from datetime import datetime, timezone

import httpx
import pytest

from hookrelay.models.webhook import WebhookRecord, WebhookStatus
from hookrelay.services.sender import HttpResponse, TransportFailure, WebhookSender


def make_record(url="http://target.test/hook", body=None) -> WebhookRecord:
    return WebhookRecord(
        id=7,
        url=url,
        body=body if body is not None else {"a": 1},
        status=WebhookStatus.PENDING,
        created_at=datetime.now(timezone.utc),
    )


class TestWebhookSenderResponses:

    @pytest.mark.asyncio
    async def test_posts_json_body_to_record_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await WebhookSender(client).send(make_record(body={"a": 1, "b": [1, 2]}))

        assert isinstance(outcome, HttpResponse)
        assert outcome.status_code == 200
        assert json.loads(outcome.body) == {"ok": True}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "http://target.test/hook"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"a": 1, "b": [1, 2]}

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="down")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await WebhookSender(client).send(make_record())

        assert outcome == HttpResponse(status_code=503, body=b"down")


class TestWebhookSenderTransportFailures:

    @pytest.mark.asyncio
    async def test_connection_error_becomes_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await WebhookSender(client).send(make_record())

        assert outcome == TransportFailure(message="Name or service not known")

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await WebhookSender(client).send(make_record())

        assert isinstance(outcome, TransportFailure)
        assert outcome.message == "timed out"

    @pytest.mark.asyncio
    async def test_unsupported_url_becomes_transport_failure(self):
        async with httpx.AsyncClient() as client:
            outcome = await WebhookSender(client).send(make_record(url="ftp://target.test/hook"))

        assert isinstance(outcome, TransportFailure)
        assert outcome.message

    @pytest.mark.asyncio
    async def test_empty_exception_message_falls_back_to_class_name(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await WebhookSender(client).send(make_record())

        assert outcome == TransportFailure(message="RemoteProtocolError")
