"""Pydantic models for Delvind payment entities."""

from .checkout import (
    CartCheckout,
    CartLineInput,
    CheckoutRequest,
    CheckoutSessionResult,
    GatewaySessionSpec,
    InvoiceCheckout,
    LineItem,
    ProductManifestEntry,
)
from .enums import (
    CheckoutSource,
    FinanceEntryType,
    FinanceStatus,
    OrderStatus,
    ProcessingResult,
    SessionMode,
)
from .errors import (
    ERROR_MESSAGES,
    CheckoutValidationError,
    ConfigurationError,
    ErrorCode,
    ErrorResponse,
    PaymentError,
    ReconciliationError,
)
from .records import CustomerDetails, FinanceRecord, Order
from .stripe_webhook import StripeWebhookEvent

__all__ = [
    # Enums
    "CheckoutSource",
    "FinanceEntryType",
    "FinanceStatus",
    "OrderStatus",
    "ProcessingResult",
    "SessionMode",
    # Checkout
    "CartCheckout",
    "CartLineInput",
    "CheckoutRequest",
    "CheckoutSessionResult",
    "GatewaySessionSpec",
    "InvoiceCheckout",
    "LineItem",
    "ProductManifestEntry",
    # Records
    "CustomerDetails",
    "FinanceRecord",
    "Order",
    # Errors
    "CheckoutValidationError",
    "ConfigurationError",
    "ERROR_MESSAGES",
    "ErrorCode",
    "ErrorResponse",
    "PaymentError",
    "ReconciliationError",
    # Stripe
    "StripeWebhookEvent",
]
