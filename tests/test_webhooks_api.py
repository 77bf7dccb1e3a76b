"""Tests for the webhook HTTP API."""
import httpx
import pytest
import pytest_asyncio

from hookrelay.config import settings
from hookrelay.database import get_db
from hookrelay.main import app
from hookrelay.models.webhook import WebhookRecord, WebhookStatus


@pytest_asyncio.fixture
async def client(session_factory):

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://hookrelay.test") as client:
        yield client
    app.dependency_overrides.clear()


class TestEnqueue:

    @pytest.mark.asyncio
    async def test_creates_pending_record(self, client, all_records):
        response = await client.post("/webhooks", json={"url": "http://x/ok", "body": {"a": 1}})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["url"] == "http://x/ok"
        assert data["body"] == {"a": 1}
        assert data["status"] == "Pending"
        assert data["startAt"] is None
        assert data["attempt"] is None
        assert data["repeatedFrom"] is None
        assert data["responseStatusCode"] is None
        assert "createdAt" in data

        (record,) = await all_records()
        assert record.id == data["id"]
        assert record.status is WebhookStatus.PENDING

    @pytest.mark.asyncio
    async def test_accepts_any_json_body(self, client):
        response = await client.post("/webhooks", json={"url": "https://x/list", "body": [1, "two", None]})

        assert response.status_code == 201
        assert response.json()["body"] == [1, "two", None]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["not a url", "/relative/path", "ftp://x/file"])
    async def test_rejects_non_absolute_urls(self, client, url):
        response = await client.post("/webhooks", json={"url": url, "body": {}})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rejects_missing_body(self, client):
        response = await client.post("/webhooks", json={"url": "http://x/ok"})

        assert response.status_code == 422


class TestList:

    @pytest.mark.asyncio
    async def test_counts_cover_whole_table_while_items_are_paged(self, client, add_records):
        await add_records(
            *[WebhookRecord(url=f"http://x/{i}", body={}, status=WebhookStatus.SUCCESS) for i in range(3)],
            WebhookRecord(url="http://x/err", body={}, status=WebhookStatus.ERROR),
            WebhookRecord(url="http://x/new", body={}, status=WebhookStatus.PENDING),
        )

        response = await client.get("/webhooks", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["totalCounts"] == {"success": 3, "error": 1, "pending": 1}
        assert data["count"] == 2
        assert [item["url"] for item in data["items"]] == ["http://x/new", "http://x/err"]

    @pytest.mark.asyncio
    async def test_defaults_to_100_items(self, client, add_records):
        await add_records(*[WebhookRecord(url=f"http://x/{i}", body={}) for i in range(105)])

        data = (await client.get("/webhooks")).json()

        assert data["count"] == 100
        assert data["totalCounts"] == {"pending": 105}

    @pytest.mark.asyncio
    async def test_empty_table(self, client):
        data = (await client.get("/webhooks")).json()

        assert data == {"totalCounts": {}, "count": 0, "items": []}

    @pytest.mark.asyncio
    async def test_rejects_non_positive_limit(self, client):
        response = await client.get("/webhooks", params={"limit": 0})

        assert response.status_code == 422


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_enqueues_one_record_per_address(self, client, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_ADDRESSES", "http://a.test/;http://b.test/api")

        response = await client.post("/webhooks/broadcast", json={"path": "/messages", "body": {"m": "hi"}})

        assert response.status_code == 201
        urls = [item["url"] for item in response.json()]
        assert urls == ["http://a.test/messages", "http://b.test/api/messages"]

    @pytest.mark.asyncio
    async def test_conflict_when_no_addresses_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_ADDRESSES", "")

        response = await client.post("/webhooks/broadcast", json={"path": "/messages", "body": {}})

        assert response.status_code == 409


class TestServiceEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_metrics_exposes_webhook_counters(self, client):
        await client.post("/webhooks", json={"url": "http://x/ok", "body": {}})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "webhooks_enqueued_total" in response.text
