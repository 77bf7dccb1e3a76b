"""
Webhook record model.

One row per outbound delivery attempt. Retries never re-queue a row:
each retry is a new row pointing back at the attempt it repeats.
"""
import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from hookrelay.models.base import Base, BigIntegerId, JsonDocument


class WebhookStatus(str, enum.Enum):
    """Webhook delivery status."""
    PENDING = "Pending"
    SUCCESS = "Success"
    ERROR = "Error"


class WebhookRecord(Base):
    """
    A single outbound webhook delivery attempt.

    Starts as PENDING and moves exactly once to SUCCESS or ERROR.
    Rows with start_at in the future are not claimable yet.
    """
    __tablename__ = "webhook_records"

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[Any] = mapped_column(JsonDocument, nullable=False)
    status: Mapped[WebhookStatus] = mapped_column(
        SQLEnum(
            WebhookStatus,
            name="webhook_status",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=WebhookStatus.PENDING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    response_status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response: Mapped[Any | None] = mapped_column(JsonDocument, nullable=True)
    attempt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    repeated_from: Mapped[int | None] = mapped_column(
        BigIntegerId, ForeignKey("webhook_records.id"), nullable=True, index=True
    )

    def __repr__(self):
        return f"<WebhookRecord(id={self.id}, url={self.url}, status={self.status})>"
