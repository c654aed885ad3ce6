"""Webhook handler for verifying and routing Stripe events.

Provides business logic for handling webhook events separate from
HTTP routing concerns. Signature verification is the only trust boundary:
nothing is read from or written to storage before it passes, and nothing
downstream re-checks authenticity.

Routing:
- checkout.session.completed / async_payment_succeeded, source=store
  -> order creation
- same events, source=finance with financeRecordId -> invoice update
- invoice.payment_succeeded with billing_reason=subscription_cycle
  -> subscription finance record
- anything else -> acknowledged and skipped
"""

import datetime as dt
import hashlib
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from delvind_payments.models.enums import CheckoutSource, ProcessingResult
from delvind_payments.models.errors import ErrorCode, PaymentError
from delvind_payments.models.stripe_webhook import StripeWebhookEvent
from delvind_payments.utils.logging import get_logger, log_webhook_event

from .dynamodb import DynamoDBService
from .reconciliation import ReconciliationOutcome, ReconciliationService
from .stripe_service import StripeService, WebhookSignatureError

logger = get_logger(__name__)

CHECKOUT_EVENT_TYPES = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}
INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
SUBSCRIPTION_CYCLE = "subscription_cycle"


class WebhookResult(BaseModel):
    """Outcome of handling one verified webhook delivery."""

    received: bool = True
    event_id: str | None = None
    event_type: str | None = None
    processing_result: ProcessingResult
    record_id: str | None = None
    message: str | None = None


class WebhookHandler:
    """Handler for verifying, routing and auditing Stripe webhook events."""

    def __init__(
        self,
        stripe_service: StripeService,
        reconciliation: ReconciliationService,
        db: DynamoDBService,
    ) -> None:
        """Initialize webhook handler.

        Args:
            stripe_service: Verifies signatures with the webhook secret
            reconciliation: Applies events to orders and finance records
            db: DynamoDB service for the audit log
        """
        self._stripe = stripe_service
        self._reconciliation = reconciliation
        self._db = db

    def handle(self, payload: bytes, signature: str | None) -> WebhookResult:
        """Verify and process one webhook delivery.

        Args:
            payload: Raw request body bytes, exactly as received
            signature: Stripe-Signature header value

        Returns:
            WebhookResult with success, duplicate or skipped

        Raises:
            ConfigurationError: If a Stripe secret is missing.
            PaymentError: INVALID_WEBHOOK_SIGNATURE if verification fails.
            ReconciliationError: If the verified event could not be applied;
                the caller should answer 5xx so Stripe redelivers.
        """
        self._stripe.ensure_configured()

        if not signature:
            logger.warning("Webhook request missing Stripe-Signature header")
            raise PaymentError(
                ErrorCode.INVALID_WEBHOOK_SIGNATURE,
                details={"reason": "Missing Stripe-Signature header"},
            )

        try:
            event = self._stripe.verify_webhook_signature(payload, signature)
        except WebhookSignatureError as e:
            raise PaymentError(
                ErrorCode.INVALID_WEBHOOK_SIGNATURE,
                details={"reason": str(e)},
            ) from e

        event_id = event.get("id") or ""
        event_type = event.get("type") or ""
        obj: dict[str, Any] = (event.get("data") or {}).get("object") or {}
        log_webhook_event(logger, event_type, event_id, result="received")

        audit = StripeWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            processed_at=dt.datetime.now(dt.UTC),
            payload_hash=hashlib.sha256(payload).hexdigest(),
            stripe_object_id=obj.get("id"),
        )

        handler = self.route(event_type, obj)
        if handler is None:
            outcome = ReconciliationOutcome(
                result=ProcessingResult.SKIPPED,
                message=f"Event type '{event_type}' not handled",
            )
        else:
            try:
                outcome = handler(obj)
            except PaymentError as e:
                audit.processing_result = ProcessingResult.ERROR
                audit.error_message = e.message
                self._record(audit)
                log_webhook_event(
                    logger,
                    event_type,
                    event_id,
                    session_id=obj.get("id"),
                    result="error",
                    error=e.message,
                )
                raise

        audit.processing_result = outcome.result
        audit.record_id = outcome.record_id
        audit.error_message = outcome.message
        self._record(audit)

        log_webhook_event(
            logger,
            event_type,
            event_id,
            session_id=obj.get("id"),
            record_id=outcome.record_id,
            result=outcome.result.value,
            error=outcome.message if outcome.result is ProcessingResult.SKIPPED else None,
        )
        return WebhookResult(
            event_id=event_id,
            event_type=event_type,
            processing_result=outcome.result,
            record_id=outcome.record_id,
            message=outcome.message,
        )

    def route(
        self, event_type: str, obj: dict[str, Any]
    ) -> Callable[[dict[str, Any]], ReconciliationOutcome] | None:
        """Pick the reconciliation handler for an event.

        Args:
            event_type: Stripe event type
            obj: The event's data.object

        Returns:
            Handler to call with ``obj``, or None to skip the event
        """
        if event_type in CHECKOUT_EVENT_TYPES:
            metadata = obj.get("metadata") or {}
            source = metadata.get("source")
            if source == CheckoutSource.STORE.value:
                return self._reconciliation.reconcile_order
            if source == CheckoutSource.FINANCE.value and metadata.get("financeRecordId"):
                return self._reconciliation.reconcile_invoice_payment
            return None

        if (
            event_type == INVOICE_PAYMENT_SUCCEEDED
            and obj.get("billing_reason") == SUBSCRIPTION_CYCLE
        ):
            return self._reconciliation.reconcile_subscription_cycle

        return None

    def _record(self, audit: StripeWebhookEvent) -> None:
        """Write the audit log entry; failures are logged, never raised.

        The first settled outcome for an event id is kept. Redeliveries only
        replace an entry whose earlier attempt ended in error.
        """
        try:
            written = self._db.put_item(
                DynamoDBService.WEBHOOK_EVENTS_TABLE,
                audit.to_item(),
                condition_expression=(
                    "attribute_not_exists(event_id) OR processing_result = :error"
                ),
                expression_attribute_values={":error": ProcessingResult.ERROR.value},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to write webhook audit log for %s: %s", audit.event_id, e)
            return

        if not written:
            logger.info(
                "Audit entry for %s already recorded; keeping first outcome (%s now)",
                audit.event_id,
                audit.processing_result.value,
            )
