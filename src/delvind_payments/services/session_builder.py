"""Builds Stripe Checkout session specs from storefront and finance requests.

The builder is pure: it validates the request and computes line items,
redirect targets and metadata without touching Stripe or the database.
All amounts leave here as integer centavos.

Cart rules:
- Every non-subscription product becomes a one-time line item priced at its
  promotional price when set, quantity preserved.
- A single subscription product switches the session to subscription mode and
  becomes a monthly recurring line item (quantity 1). Other products in the
  same cart stay in the session as one-time items.
- Shipping is charged as its own line item only when some product requires
  shipping, not all of those ship free, and the shipping cost is positive.
"""

import logging
from decimal import Decimal

from delvind_payments.config import Settings
from delvind_payments.models.checkout import (
    CartCheckout,
    CartLineInput,
    CheckoutRequest,
    GatewaySessionSpec,
    InvoiceCheckout,
    LineItem,
    ProductManifestEntry,
)
from delvind_payments.models.enums import CheckoutSource, SessionMode
from delvind_payments.models.errors import CheckoutValidationError, ErrorCode
from delvind_payments.utils.metadata import encode_product_manifest
from delvind_payments.utils.money import to_minor_units

logger = logging.getLogger(__name__)

SHIPPING_LINE_NAME = "Custo de Envio"
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"
PAYMENT_METHOD_TYPES = ["card", "boleto"]


def requires_shipping_charge(items: list[CartLineInput], shipping_cost: Decimal) -> bool:
    """Whether the cart gets a shipping line item.

    Args:
        items: Cart lines
        shipping_cost: Quoted shipping cost in BRL

    Returns:
        True if at least one item requires shipping, not every such item
        ships free, and the cost is positive.
    """
    shipped = [item for item in items if item.requires_shipping]
    if not shipped:
        return False
    if all(item.free_shipping for item in shipped):
        return False
    return shipping_cost > 0


class SessionRequestBuilder:
    """Turns a checkout request into a ``GatewaySessionSpec``.

    Usage:
        builder = SessionRequestBuilder(settings)
        spec = builder.build(CartCheckout(cart_items=[...], shipping_cost=15))
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the builder.

        Args:
            settings: Provides base URL, currency and boleto grace period.
        """
        self._settings = settings

    def build(self, request: CheckoutRequest) -> GatewaySessionSpec:
        """Validate a checkout request and build the session spec.

        Args:
            request: Cart or invoice checkout.

        Returns:
            Session spec ready to submit to Stripe.

        Raises:
            CheckoutValidationError: If the request cannot be paid as given.
        """
        if isinstance(request, CartCheckout):
            return self._build_cart(request)
        if isinstance(request, InvoiceCheckout):
            return self._build_invoice(request)
        raise CheckoutValidationError(ErrorCode.INVALID_CHECKOUT_REQUEST)

    # === Cart checkout ===

    def _subscription_item(self, items: list[CartLineInput]) -> CartLineInput | None:
        subscriptions = [item for item in items if item.is_subscription]
        if not subscriptions:
            return None
        if len(subscriptions) > 1:
            raise CheckoutValidationError(
                ErrorCode.MULTIPLE_SUBSCRIPTIONS,
                details={"products": ",".join(item.id for item in subscriptions)},
            )
        item = subscriptions[0]
        if not item.subscription_price:
            raise CheckoutValidationError(
                ErrorCode.SUBSCRIPTION_PRICE_MISSING,
                details={"product_id": item.id},
            )
        return item

    @staticmethod
    def _image_refs(item: CartLineInput) -> list[str]:
        return [item.image_url] if item.image_url else []

    def _build_cart(self, request: CartCheckout) -> GatewaySessionSpec:
        items = request.cart_items
        if not items:
            raise CheckoutValidationError(ErrorCode.CART_EMPTY)

        subscription = self._subscription_item(items)
        mode = SessionMode.SUBSCRIPTION if subscription else SessionMode.PAYMENT

        line_items: list[LineItem] = []
        if subscription is not None:
            line_items.append(
                LineItem(
                    name=subscription.name,
                    image_refs=self._image_refs(subscription),
                    unit_amount=to_minor_units(subscription.subscription_price),
                    quantity=1,
                    recurring_interval="month",
                )
            )

        for item in items:
            if item is subscription:
                continue
            line_items.append(
                LineItem(
                    name=item.name,
                    image_refs=self._image_refs(item),
                    unit_amount=to_minor_units(item.effective_price),
                    quantity=item.quantity,
                )
            )

        if requires_shipping_charge(items, request.shipping_cost):
            line_items.append(
                LineItem(
                    name=SHIPPING_LINE_NAME,
                    unit_amount=to_minor_units(request.shipping_cost),
                    quantity=1,
                )
            )

        manifest = [
            ProductManifestEntry(id=item.id, name=item.name, is_subscription=item.is_subscription)
            for item in items
        ]
        metadata = {
            "source": CheckoutSource.STORE.value,
            "products": encode_product_manifest(manifest),
        }

        base = self._settings.base_url
        spec = GatewaySessionSpec(
            line_items=line_items,
            currency=self._settings.currency,
            mode=mode,
            success_url=f"{base}/loja/success?session_id={SESSION_ID_PLACEHOLDER}",
            cancel_url=f"{base}/loja/cart",
            metadata=metadata,
            payment_method_types=list(PAYMENT_METHOD_TYPES),
            shipping_countries=(
                list(self._settings.shipping_countries)
                if any(item.requires_shipping for item in items)
                else []
            ),
        )
        if mode is SessionMode.SUBSCRIPTION:
            spec = self._with_subscription_options(spec)

        logger.debug(
            "Built %s session spec with %d line items", mode.value, len(line_items)
        )
        return spec

    def _with_subscription_options(self, spec: GatewaySessionSpec) -> GatewaySessionSpec:
        return spec.model_copy(
            update={
                "require_three_d_secure": True,
                "boleto_expires_after_days": self._settings.boleto_grace_days,
                "always_collect_payment_method": True,
            }
        )

    # === Invoice checkout ===

    def _build_invoice(self, request: InvoiceCheckout) -> GatewaySessionSpec:
        if not request.title or not request.customer_email or not request.amount:
            raise CheckoutValidationError(ErrorCode.INVOICE_DATA_INCOMPLETE)

        base = self._settings.base_url
        return GatewaySessionSpec(
            line_items=[
                LineItem(
                    name=request.title,
                    unit_amount=to_minor_units(request.amount),
                    quantity=1,
                )
            ],
            currency=self._settings.currency,
            mode=SessionMode.PAYMENT,
            success_url=(
                f"{base}/dashboard/payments?status=success"
                f"&session_id={SESSION_ID_PLACEHOLDER}"
            ),
            cancel_url=f"{base}/dashboard/payments?status=cancelled",
            customer_email=str(request.customer_email),
            metadata={
                "source": CheckoutSource.FINANCE.value,
                "financeRecordId": request.finance_record_id,
            },
            payment_method_types=list(PAYMENT_METHOD_TYPES),
        )
