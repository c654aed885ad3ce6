"""API request/response models."""

from .checkout import CheckoutRequestBody, CheckoutSuccessResponse, WebhookResponse

__all__ = [
    "CheckoutRequestBody",
    "CheckoutSuccessResponse",
    "WebhookResponse",
]
