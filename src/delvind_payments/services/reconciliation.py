"""Reconciliation of verified Stripe events into orders and finance records.

Each handler is safe to run more than once for the same event. Records are
created with a conditional put keyed by an id derived from the Stripe
session or invoice id, so concurrent or repeated deliveries produce at most
one record without a separate existence check.
"""

import datetime as dt
import hashlib
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from delvind_payments.models.enums import (
    FinanceEntryType,
    FinanceStatus,
    OrderStatus,
    ProcessingResult,
)
from delvind_payments.models.errors import ErrorCode, ReconciliationError
from delvind_payments.models.records import CustomerDetails, FinanceRecord, Order
from delvind_payments.utils.logging import get_logger
from delvind_payments.utils.metadata import decode_product_manifest
from delvind_payments.utils.money import from_minor_units

from .dynamodb import DynamoDBService

logger = get_logger(__name__)

SUBSCRIPTION_TITLE_PREFIX = "Assinatura"


class ReconciliationOutcome(BaseModel):
    """Result of applying one event to storage."""

    result: ProcessingResult
    record_id: str | None = None
    message: str | None = None


def derive_record_id(prefix: str, stripe_id: str) -> str:
    """Derive a stable record id from a Stripe object id.

    Args:
        prefix: Record prefix (ORD, FIN)
        stripe_id: Stripe session (cs_xxx) or invoice (in_xxx) id

    Returns:
        ID like ORD-3F2A9C0B1D4E5F60
    """
    digest = hashlib.sha256(stripe_id.encode("utf-8")).hexdigest()[:16].upper()
    return f"{prefix}-{digest}"


def _now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _shipping_details(session: dict[str, Any]) -> dict[str, Any] | None:
    # Newer API versions moved shipping under collected_information
    details = session.get("shipping_details")
    if details is None:
        details = (session.get("collected_information") or {}).get("shipping_details")
    return details or None


class ReconciliationService:
    """Applies verified payment events to the orders and finance tables."""

    def __init__(self, db: DynamoDBService) -> None:
        """Initialize reconciliation service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def reconcile_order(self, session: dict[str, Any]) -> ReconciliationOutcome:
        """Create the order for a completed storefront checkout session.

        A repeated delivery for the same session leaves the existing order
        alone, except that a later ``paid`` payment status (async boleto
        confirmation) is recorded on it.

        Args:
            session: Stripe Checkout Session object

        Returns:
            success if created or updated, duplicate if already recorded

        Raises:
            ReconciliationError: If the session has no customer email or the
                write fails.
        """
        session_id = session["id"]
        customer = session.get("customer_details") or {}
        email = customer.get("email") or session.get("customer_email")
        if not email:
            logger.error("Checkout session %s has no customer email", session_id)
            raise ReconciliationError(
                ErrorCode.ORDER_CONTACT_MISSING,
                details={"session_id": session_id},
            )

        metadata = session.get("metadata") or {}
        order_id = derive_record_id("ORD", session_id)
        payment_status = session.get("payment_status")
        order = Order(
            order_id=order_id,
            stripe_session_id=session_id,
            customer_details=CustomerDetails(name=customer.get("name"), email=email),
            shipping_details=_shipping_details(session),
            amount_total=from_minor_units(session.get("amount_total") or 0),
            currency=session.get("currency") or "brl",
            status=OrderStatus.PENDING,
            payment_status=payment_status,
            products=decode_product_manifest(metadata.get("products")),
            created_at=dt.datetime.now(dt.UTC),
        )

        try:
            created = self.db.create_item(
                DynamoDBService.ORDERS_TABLE, order.to_item(), "order_id"
            )
            if created:
                logger.info("Order %s created for session %s", order_id, session_id)
                return ReconciliationOutcome(
                    result=ProcessingResult.SUCCESS, record_id=order_id
                )

            if payment_status == "paid":
                updated = self.db.update_item(
                    DynamoDBService.ORDERS_TABLE,
                    {"order_id": order_id},
                    "SET payment_status = :paid, updated_at = :now",
                    {":paid": "paid", ":now": _now()},
                    condition_expression=(
                        "attribute_exists(order_id) AND "
                        "(attribute_not_exists(payment_status) OR payment_status <> :paid)"
                    ),
                )
                if updated is not None:
                    logger.info("Order %s marked as paid", order_id)
                    return ReconciliationOutcome(
                        result=ProcessingResult.SUCCESS,
                        record_id=order_id,
                        message="Payment status updated",
                    )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to persist order for session %s: %s", session_id, e)
            raise ReconciliationError(
                ErrorCode.PERSISTENCE_FAILED,
                details={"session_id": session_id},
            ) from e

        return ReconciliationOutcome(
            result=ProcessingResult.DUPLICATE,
            record_id=order_id,
            message="Order already recorded",
        )

    def reconcile_invoice_payment(self, session: dict[str, Any]) -> ReconciliationOutcome:
        """Mark an existing finance record as paid, pending review.

        The record moves to "Pagamento Enviado"; confirming receipt
        ("Recebido") stays a manual step of the finance team and is never
        overwritten here.

        Args:
            session: Stripe Checkout Session object with financeRecordId metadata

        Returns:
            success, duplicate (same session already applied) or skipped
            (record missing or already received)

        Raises:
            ReconciliationError: If the write fails.
        """
        session_id = session["id"]
        finance_id = (session.get("metadata") or {})["financeRecordId"]

        try:
            updated = self.db.update_item(
                DynamoDBService.FINANCE_TABLE,
                {"finance_id": finance_id},
                "SET #status = :submitted, stripe_session_id = :sid, updated_at = :now",
                {
                    ":submitted": FinanceStatus.PAYMENT_SUBMITTED.value,
                    ":received": FinanceStatus.RECEIVED.value,
                    ":sid": session_id,
                    ":now": _now(),
                },
                expression_attribute_names={"#status": "status"},
                condition_expression=(
                    "attribute_exists(finance_id) AND #status <> :received AND "
                    "(attribute_not_exists(stripe_session_id) OR stripe_session_id <> :sid)"
                ),
            )
            if updated is not None:
                logger.info(
                    "Finance record %s set to %s via session %s",
                    finance_id,
                    FinanceStatus.PAYMENT_SUBMITTED.value,
                    session_id,
                )
                return ReconciliationOutcome(
                    result=ProcessingResult.SUCCESS, record_id=finance_id
                )

            existing = self.db.get_item(
                DynamoDBService.FINANCE_TABLE, {"finance_id": finance_id}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to update finance record %s: %s", finance_id, e)
            raise ReconciliationError(
                ErrorCode.PERSISTENCE_FAILED,
                details={"finance_id": finance_id},
            ) from e

        if existing is None:
            logger.warning(
                "Session %s paid finance record %s which does not exist",
                session_id,
                finance_id,
            )
            return ReconciliationOutcome(
                result=ProcessingResult.SKIPPED,
                record_id=finance_id,
                message=f"Finance record {finance_id} not found",
            )
        if existing.get("status") == FinanceStatus.RECEIVED.value:
            logger.warning(
                "Finance record %s already received, ignoring session %s",
                finance_id,
                session_id,
            )
            return ReconciliationOutcome(
                result=ProcessingResult.SKIPPED,
                record_id=finance_id,
                message="Finance record already received",
            )
        return ReconciliationOutcome(
            result=ProcessingResult.DUPLICATE,
            record_id=finance_id,
            message="Session already applied",
        )

    def reconcile_subscription_cycle(self, invoice: dict[str, Any]) -> ReconciliationOutcome:
        """Record a recurring subscription charge for the paying client.

        The client is the user whose email matches the invoice email. An
        unknown email is logged and skipped so the webhook still succeeds.

        Args:
            invoice: Stripe Invoice object (billing_reason subscription_cycle)

        Returns:
            success, duplicate or skipped (no matching user)

        Raises:
            ReconciliationError: If a lookup or write fails.
        """
        invoice_id = invoice["id"]
        email = invoice.get("customer_email")
        if not email:
            logger.warning("Subscription invoice %s has no customer email", invoice_id)
            return ReconciliationOutcome(
                result=ProcessingResult.SKIPPED,
                message="Invoice has no customer email",
            )

        finance_id = derive_record_id("FIN", invoice_id)
        try:
            user = self.db.get_user_by_email(email)
            if user is None:
                logger.warning(
                    "Subscription payment %s from unknown email %s, no record created",
                    invoice_id,
                    email,
                )
                return ReconciliationOutcome(
                    result=ProcessingResult.SKIPPED,
                    message=f"No user with email {email}",
                )

            now = dt.datetime.now(dt.UTC)
            record = FinanceRecord(
                finance_id=finance_id,
                client_id=user.get("user_id"),
                client_name=user.get("name") or invoice.get("customer_name"),
                title=f"{SUBSCRIPTION_TITLE_PREFIX} - {self._plan_name(invoice)}",
                total_amount=from_minor_units(invoice.get("amount_paid") or 0),
                status=FinanceStatus.PAYMENT_SUBMITTED,
                entry_type=FinanceEntryType.SUBSCRIPTION,
                stripe_session_id=invoice_id,
                stripe_subscription_id=invoice.get("subscription"),
                created_at=now,
            )
            created = self.db.create_item(
                DynamoDBService.FINANCE_TABLE, record.to_item(), "finance_id"
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to record subscription invoice %s: %s", invoice_id, e)
            raise ReconciliationError(
                ErrorCode.PERSISTENCE_FAILED,
                details={"invoice_id": invoice_id},
            ) from e

        if not created:
            return ReconciliationOutcome(
                result=ProcessingResult.DUPLICATE,
                record_id=finance_id,
                message="Subscription invoice already recorded",
            )

        logger.info(
            "Finance record %s created for subscription invoice %s", finance_id, invoice_id
        )
        return ReconciliationOutcome(result=ProcessingResult.SUCCESS, record_id=finance_id)

    @staticmethod
    def _plan_name(invoice: dict[str, Any]) -> str:
        lines = (invoice.get("lines") or {}).get("data") or []
        for line in lines:
            if line.get("description"):
                return str(line["description"])
        return "Plano mensal"
