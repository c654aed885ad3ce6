"""FastAPI dependency injection providers for payment services.

The process owns one instance of each service, created lazily and cached
with @lru_cache. Services receive their settings, secrets and storage
client explicitly; nothing reads global state at call time.

Usage in routes:
    from delvind_api.dependencies import get_checkout_service

    @router.post("/checkout")
    async def create_checkout(
        checkout: CheckoutService = Depends(get_checkout_service),
    ):
        ...

Service Dependency Graph:
    Settings (get_settings)
        ├── SecretResolver
        │       └── StripeService
        │               ├── CheckoutService (+ SessionRequestBuilder)
        │               └── WebhookHandler
        └── DynamoDBService
                └── ReconciliationService
                        └── WebhookHandler

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from delvind_payments.config import get_settings
from delvind_payments.services.checkout_service import CheckoutService
from delvind_payments.services.dynamodb import DynamoDBService
from delvind_payments.services.reconciliation import ReconciliationService
from delvind_payments.services.secrets import SecretResolver
from delvind_payments.services.session_builder import SessionRequestBuilder
from delvind_payments.services.stripe_service import StripeService
from delvind_payments.services.webhook_handler import WebhookHandler


@lru_cache
def get_secret_resolver() -> SecretResolver:
    """Get cached SecretResolver for the configured secrets directory."""
    return SecretResolver(get_settings().secrets_dir)


@lru_cache
def get_stripe_service() -> StripeService:
    """Get cached StripeService instance."""
    return StripeService(get_secret_resolver())


@lru_cache
def get_dynamodb_service() -> DynamoDBService:
    """Get cached DynamoDBService instance.

    Returns:
        DynamoDBService using the configured table prefix.
    """
    return DynamoDBService(get_settings().table_prefix)


@lru_cache
def get_checkout_service() -> CheckoutService:
    """Get cached CheckoutService instance.

    Returns:
        CheckoutService configured with builder, Stripe and secrets.
    """
    return CheckoutService(
        builder=SessionRequestBuilder(get_settings()),
        stripe_service=get_stripe_service(),
        secrets=get_secret_resolver(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler instance.

    Returns:
        WebhookHandler configured with Stripe, reconciliation and audit log.
    """
    db = get_dynamodb_service()
    return WebhookHandler(
        stripe_service=get_stripe_service(),
        reconciliation=ReconciliationService(db),
        db=db,
    )


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Call this in test fixtures to ensure clean state between tests.
    """
    get_settings.cache_clear()
    get_secret_resolver.cache_clear()
    get_stripe_service.cache_clear()
    get_dynamodb_service.cache_clear()
    get_checkout_service.cache_clear()
    get_webhook_handler.cache_clear()
