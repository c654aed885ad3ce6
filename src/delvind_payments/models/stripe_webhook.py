"""Stripe webhook event model for auditing deliveries."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import ProcessingResult


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    Used for:
    - Auditing: track all verified webhook deliveries
    - Debugging: investigate payment issues
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["checkout.session.completed", "invoice.payment_succeeded"],
    )
    processed_at: datetime = Field(
        ...,
        description="When the event was processed",
    )
    payload_hash: str = Field(
        ...,
        description="SHA-256 hash of the raw payload",
    )
    stripe_object_id: str | None = Field(
        default=None,
        description="Session (cs_xxx) or invoice (in_xxx) the event refers to",
    )
    record_id: str | None = Field(
        default=None,
        description="Order or finance record created/updated",
    )
    processing_result: ProcessingResult = Field(default=ProcessingResult.SUCCESS)
    error_message: str | None = Field(
        default=None,
        description="Error or skip reason",
    )

    def to_item(self) -> dict[str, Any]:
        """Serialize for DynamoDB."""
        item: dict[str, Any] = {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "processed_at": self.processed_at.isoformat(),
            "payload_hash": self.payload_hash,
            "processing_result": self.processing_result.value,
        }
        if self.stripe_object_id:
            item["stripe_object_id"] = self.stripe_object_id
        if self.record_id:
            item["record_id"] = self.record_id
        if self.error_message:
            item["error_message"] = self.error_message
        return item
