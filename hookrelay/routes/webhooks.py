"""
Webhook API routes.

Provides endpoints for enqueueing outbound webhooks and inspecting the queue.
"""
from datetime import datetime
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import settings
from hookrelay.database import get_db
from hookrelay.logging_config import get_logger
from hookrelay.models.webhook import WebhookStatus
from hookrelay.routes.metrics import track_webhooks_enqueued
from hookrelay.services.webhook_service import DEFAULT_LIST_LIMIT, WebhookService


router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = get_logger(component="webhooks_api")


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WebhookCandidate(CamelModel):
    """Request model for enqueueing a webhook."""
    url: str
    body: Any

    @field_validator("body")
    @classmethod
    def body_must_be_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("body must not be null")
        return value

    @field_validator("url")
    @classmethod
    def url_must_be_absolute(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("url must be an absolute http(s) URL")
        return value


class BroadcastRequest(CamelModel):
    """Request model for enqueueing one payload to every configured address."""
    path: str
    body: Any


class WebhookRecordResponse(CamelModel):
    """Response model for a webhook record."""
    id: int
    url: str
    body: Any
    status: WebhookStatus
    created_at: datetime
    response_status_code: int | None = None
    response: Any | None = None
    attempt: int | None = None
    start_at: datetime | None = None
    repeated_from: int | None = None


class WebhookCollectionResponse(CamelModel):
    """Response model for the webhook listing."""
    total_counts: dict[str, int]
    count: int
    items: list[WebhookRecordResponse]


@router.post("", response_model=WebhookRecordResponse, status_code=status.HTTP_201_CREATED)
async def enqueue_webhook(
    candidate: WebhookCandidate,
    db: AsyncSession = Depends(get_db)
):
    """
    Enqueue a webhook for delivery.

    The record is created as Pending and picked up by the next worker iteration.
    """
    record = await WebhookService(db).enqueue(candidate.url, candidate.body)
    track_webhooks_enqueued()
    logger.info("webhook_enqueued", webhook_id=record.id, url=record.url)
    return record


@router.post(
    "/broadcast",
    response_model=list[WebhookRecordResponse],
    status_code=status.HTTP_201_CREATED,
)
async def broadcast_webhook(
    request: BroadcastRequest,
    db: AsyncSession = Depends(get_db)
):
    """Enqueue the payload once for every address in WEBHOOK_ADDRESSES."""
    addresses = settings.webhook_addresses
    if not addresses:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No webhook addresses configured"
        )

    records = await WebhookService(db).broadcast(request.body, request.path, addresses)
    track_webhooks_enqueued(len(records))
    logger.info("webhook_broadcast_enqueued", path=request.path, count=len(records))
    return records


@router.get("", response_model=WebhookCollectionResponse)
async def list_webhooks(
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1),
    db: AsyncSession = Depends(get_db)
):
    """List the most recent webhook records with status counts over all records."""
    collection = await WebhookService(db).list_recent(limit)
    return WebhookCollectionResponse(
        total_counts=collection.total_counts,
        count=collection.count,
        items=[WebhookRecordResponse.model_validate(r) for r in collection.items],
    )
