"""Webhook endpoints for Stripe payment events.

Provides endpoints for:
- Stripe webhook events (checkout sessions, subscription invoices)

These endpoints do NOT require authentication as they receive signed
payloads from Stripe. The raw body is passed through untouched because the
signature covers the exact bytes.
"""

from fastapi import APIRouter, Depends, Request

from delvind_api.dependencies import get_webhook_handler
from delvind_api.models import WebhookResponse
from delvind_payments.models.errors import ErrorResponse
from delvind_payments.services.webhook_handler import WebhookHandler

router = APIRouter(tags=["webhooks"])

STRIPE_SIGNATURE_HEADER = "Stripe-Signature"


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed / checkout.session.async_payment_succeeded:
  creates the store order, or marks the invoice's finance record as paid
- invoice.payment_succeeded (subscription_cycle): records the recurring charge

**No authentication required** - signature is verified using the Stripe webhook secret.

**Idempotent**: Redelivered events return 200 with 'duplicate' result.
Persistence failures return 500 so Stripe retries.
""",
    response_model=WebhookResponse,
    responses={
        200: {
            "description": "Event received and processed (or acknowledged)",
            "model": WebhookResponse,
        },
        400: {
            "description": "Invalid signature or missing header",
            "model": ErrorResponse,
        },
        500: {
            "description": "Missing configuration or persistence failure",
            "model": ErrorResponse,
        },
    },
)
async def handle_stripe_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Handle incoming Stripe webhook events.

    Verifies the signature, then routes and reconciles the event.
    """
    payload = await request.body()
    result = handler.handle(payload, request.headers.get(STRIPE_SIGNATURE_HEADER))

    return WebhookResponse(
        received=result.received,
        event_id=result.event_id,
        event_type=result.event_type,
        processing_result=result.processing_result,
        message=result.message,
    )
