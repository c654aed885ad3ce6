"""Services for checkout sessions and webhook reconciliation."""

from .checkout_service import CheckoutService
from .dynamodb import DynamoDBService
from .reconciliation import ReconciliationOutcome, ReconciliationService
from .secrets import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, SecretResolver
from .session_builder import SessionRequestBuilder
from .stripe_service import StripeService, StripeServiceError, WebhookSignatureError
from .webhook_handler import WebhookHandler, WebhookResult

__all__ = [
    "CheckoutService",
    "DynamoDBService",
    "ReconciliationOutcome",
    "ReconciliationService",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "SecretResolver",
    "SessionRequestBuilder",
    "StripeService",
    "StripeServiceError",
    "WebhookHandler",
    "WebhookResult",
    "WebhookSignatureError",
]
