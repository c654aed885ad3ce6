"""Stripe gateway service for checkout sessions and webhook verification.

Provides integration with Stripe using the v8+ StripeClient pattern.
Credentials come from the ``SecretResolver`` (mounted file, then environment).
"""

import json
import logging
from typing import Any

import stripe
from stripe import StripeClient

from delvind_payments.models.checkout import (
    CheckoutSessionResult,
    GatewaySessionSpec,
    LineItem,
)
from delvind_payments.models.enums import SessionMode

from .secrets import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, SecretResolver

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails.

    ``str(error)`` is Stripe's own message as it appears in the API error
    body, without the request-id prefix ``stripe.StripeError`` adds.
    """

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Error message as reported by Stripe.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class WebhookSignatureError(Exception):
    """Raised when a webhook payload fails signature verification."""


def _line_item_params(item: LineItem, currency: str) -> dict[str, Any]:
    product_data: dict[str, Any] = {"name": item.name}
    if item.image_refs:
        product_data["images"] = item.image_refs

    price_data: dict[str, Any] = {
        "currency": currency,
        "unit_amount": item.unit_amount,
        "product_data": product_data,
    }
    if item.recurring_interval:
        price_data["recurring"] = {"interval": item.recurring_interval}

    return {"price_data": price_data, "quantity": item.quantity}


def session_params(spec: GatewaySessionSpec) -> dict[str, Any]:
    """Translate a session spec into Stripe Checkout ``create`` params.

    Args:
        spec: Built session spec.

    Returns:
        Params dict for ``client.checkout.sessions.create``.
    """
    params: dict[str, Any] = {
        "mode": spec.mode.value,
        "payment_method_types": spec.payment_method_types,
        "line_items": [_line_item_params(item, spec.currency) for item in spec.line_items],
        "success_url": spec.success_url,
        "cancel_url": spec.cancel_url,
        "metadata": spec.metadata,
    }
    if spec.customer_email:
        params["customer_email"] = spec.customer_email
    if spec.shipping_countries:
        params["shipping_address_collection"] = {
            "allowed_countries": spec.shipping_countries,
        }

    if spec.mode is SessionMode.SUBSCRIPTION:
        # Recurring invoices only see subscription metadata, not session metadata
        params["subscription_data"] = {"metadata": spec.metadata}

    options: dict[str, Any] = {}
    if spec.require_three_d_secure:
        options["card"] = {"request_three_d_secure": "any"}
    if spec.boleto_expires_after_days is not None:
        options["boleto"] = {"expires_after_days": spec.boleto_expires_after_days}
    if options:
        params["payment_method_options"] = options
    if spec.always_collect_payment_method:
        params["payment_method_collection"] = "always"

    return params


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - Checkout session creation
    - Webhook signature validation

    Usage:
        stripe_svc = StripeService(SecretResolver("/etc/secrets"))
        result = stripe_svc.create_checkout_session(spec)
    """

    def __init__(self, secrets: SecretResolver) -> None:
        """Initialize Stripe service.

        Args:
            secrets: Resolver for the API key and webhook signing secret.
        """
        self._secrets = secrets
        self._client: StripeClient | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            ConfigurationError: If the API key is not configured.
        """
        if self._client is None:
            secret_key = self._secrets.require(STRIPE_SECRET_KEY)
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized")
        return self._client

    def ensure_configured(self) -> None:
        """Check both Stripe secrets are available.

        Raises:
            ConfigurationError: If either secret is missing.
        """
        self._secrets.require(STRIPE_SECRET_KEY)
        self._secrets.require(STRIPE_WEBHOOK_SECRET)

    def create_checkout_session(self, spec: GatewaySessionSpec) -> CheckoutSessionResult:
        """Create a Stripe Checkout session.

        Args:
            spec: Session spec from ``SessionRequestBuilder``.

        Returns:
            Session ID and hosted checkout URL.

        Raises:
            ConfigurationError: If the API key is not configured.
            StripeServiceError: If Stripe rejects the session.
        """
        client = self._get_client()
        params = session_params(spec)

        try:
            session = client.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            error_code = e.code
            # user_message is Stripe's message as sent; str(e) adds a "Request req_..." prefix
            message = e.user_message or str(e)
            logger.error(
                "Stripe checkout session creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(message, stripe_error_code=error_code) from e

        logger.info(
            "Checkout session created: %s (mode=%s, source=%s)",
            session.id,
            spec.mode.value,
            spec.metadata.get("source"),
        )
        return CheckoutSessionResult(session_id=session.id, session_url=session.url)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Uses Stripe's default timestamp tolerance.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event as plain dicts.

        Raises:
            ConfigurationError: If the webhook secret is not configured.
            WebhookSignatureError: If the signature or payload is invalid.
        """
        webhook_secret = self._secrets.require(STRIPE_WEBHOOK_SECRET)

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                webhook_secret,
                stripe.Webhook.DEFAULT_TOLERANCE,
            )
            event: dict[str, Any] = json.loads(body)
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise WebhookSignatureError("Invalid webhook signature") from e
        except ValueError as e:
            # UnicodeDecodeError and JSONDecodeError
            logger.warning("Invalid webhook payload: %s", str(e))
            raise WebhookSignatureError("Invalid webhook payload") from e

        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid webhook payload")

        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event
