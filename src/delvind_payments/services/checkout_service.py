"""Checkout orchestration: validate, build and submit a Stripe session."""

from typing import Callable

from delvind_payments.models.checkout import CheckoutRequest, CheckoutSessionResult
from delvind_payments.models.errors import ErrorCode, PaymentError
from delvind_payments.utils.logging import get_logger, log_checkout_operation

from .secrets import STRIPE_SECRET_KEY, SecretResolver
from .session_builder import SessionRequestBuilder
from .stripe_service import StripeService, StripeServiceError

logger = get_logger(__name__)


class CheckoutService:
    """Creates gateway-hosted checkout sessions.

    Configuration is checked before validation so that a missing API key
    never lets a request reach Stripe, and validation happens before any
    gateway call.
    """

    def __init__(
        self,
        builder: SessionRequestBuilder,
        stripe_service: StripeService,
        secrets: SecretResolver,
    ) -> None:
        self._builder = builder
        self._stripe = stripe_service
        self._secrets = secrets

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the Stripe API key is missing."""
        self._secrets.require(STRIPE_SECRET_KEY)

    def create_session(
        self, request: CheckoutRequest | Callable[[], CheckoutRequest]
    ) -> CheckoutSessionResult:
        """Create a Stripe Checkout session for a cart or invoice.

        Args:
            request: Checkout request, or a callable producing it. A callable
                is only invoked once configuration has been checked, so
                request validation never runs without an API key.

        Returns:
            Stripe session ID and redirect URL.

        Raises:
            ConfigurationError: If the Stripe API key is missing.
            CheckoutValidationError: If the request is incomplete.
            PaymentError: With ``STRIPE_API_ERROR`` and Stripe's own message
                if the gateway rejects the session.
        """
        self.ensure_configured()
        if callable(request):
            request = request()
        spec = self._builder.build(request)
        amount_cents = sum(item.unit_amount * item.quantity for item in spec.line_items)

        try:
            result = self._stripe.create_checkout_session(spec)
        except StripeServiceError as e:
            log_checkout_operation(
                logger,
                "create_checkout_session",
                source=request.source.value,
                amount_cents=amount_cents,
                error=str(e),
                stripe_error_code=e.stripe_error_code,
            )
            details = {"stripe_error_code": e.stripe_error_code} if e.stripe_error_code else None
            raise PaymentError(
                ErrorCode.STRIPE_API_ERROR,
                details=details,
                message=str(e),
            ) from e

        log_checkout_operation(
            logger,
            "create_checkout_session",
            source=request.source.value,
            session_id=result.session_id,
            amount_cents=amount_cents,
            mode=spec.mode.value,
        )
        return result
