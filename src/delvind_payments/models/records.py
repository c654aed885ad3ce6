"""Persisted order and finance records written by webhook reconciliation."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from .checkout import ProductManifestEntry
from .enums import FinanceEntryType, FinanceStatus, OrderStatus


class CustomerDetails(BaseModel):
    """Payer contact as reported by Stripe."""

    name: str | None = None
    email: str


class Order(BaseModel):
    """A storefront order created from a completed checkout session.

    ``order_id`` is derived from ``stripe_session_id`` so that at most one
    order exists per session.
    """

    order_id: str = Field(..., examples=["ORD-3F2A9C0B1D4E5F60"])
    stripe_session_id: str = Field(..., examples=["cs_test_a1b2c3"])
    customer_details: CustomerDetails
    shipping_details: dict[str, Any] | None = None
    amount_total: Decimal = Field(..., ge=0, description="Total in BRL")
    currency: str = "brl"
    status: OrderStatus = OrderStatus.PENDING
    payment_status: str | None = Field(
        default=None, description="Stripe payment_status (paid, unpaid)"
    )
    products: list[ProductManifestEntry] = Field(default_factory=list)
    created_at: datetime

    def to_item(self) -> dict[str, Any]:
        """Serialize for DynamoDB (Decimal amounts, ISO timestamps)."""
        item: dict[str, Any] = {
            "order_id": self.order_id,
            "stripe_session_id": self.stripe_session_id,
            "customer_details": self.customer_details.model_dump(exclude_none=True),
            "amount_total": self.amount_total,
            "currency": self.currency,
            "status": self.status.value,
            "products": [p.model_dump(by_alias=True) for p in self.products],
            "created_at": self.created_at.isoformat(),
        }
        if self.shipping_details:
            item["shipping_details"] = self.shipping_details
        if self.payment_status:
            item["payment_status"] = self.payment_status
        return item


class FinanceRecord(BaseModel):
    """An entry of the finance ledger (invoice or subscription charge)."""

    finance_id: str
    client_id: str | None = None
    client_name: str | None = None
    title: str
    total_amount: Decimal = Field(..., ge=0, description="Total in BRL")
    status: FinanceStatus
    entry_type: FinanceEntryType
    stripe_session_id: str | None = Field(
        default=None,
        description="Checkout session (cs_xxx) or invoice (in_xxx) that paid it",
    )
    stripe_subscription_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    def to_item(self) -> dict[str, Any]:
        """Serialize for DynamoDB, omitting unset optional attributes."""
        item: dict[str, Any] = {
            "finance_id": self.finance_id,
            "title": self.title,
            "total_amount": self.total_amount,
            "status": self.status.value,
            "entry_type": self.entry_type.value,
            "created_at": self.created_at.isoformat(),
        }
        optional = {
            "client_id": self.client_id,
            "client_name": self.client_name,
            "stripe_session_id": self.stripe_session_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        item.update({k: v for k, v in optional.items() if v is not None})
        return item
