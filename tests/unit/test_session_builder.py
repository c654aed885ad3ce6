"""Unit tests for SessionRequestBuilder.

Test categories:
- Cart checkout: line items, promo prices, shipping rule, metadata
- Subscription carts: mode switch, recurring line, options
- Invoice checkout: single line, redirects, metadata
- Validation failures
"""

import json
from decimal import Decimal

import pytest

from delvind_payments.config import Settings
from delvind_payments.models.checkout import CartCheckout, CartLineInput, InvoiceCheckout
from delvind_payments.models.enums import SessionMode
from delvind_payments.models.errors import CheckoutValidationError, ErrorCode
from delvind_payments.services.session_builder import (
    SHIPPING_LINE_NAME,
    SessionRequestBuilder,
    requires_shipping_charge,
)

BASE = "https://loja.example.com"


@pytest.fixture
def builder(settings: Settings) -> SessionRequestBuilder:
    return SessionRequestBuilder(settings)


def _item(**overrides) -> CartLineInput:
    data = {"id": "p1", "name": "Camiseta Delvind", "price": Decimal("100")}
    data.update(overrides)
    return CartLineInput(**data)


class TestCartCheckout:
    """Tests for one-time cart sessions."""

    def test_single_shipped_item_with_shipping_cost(self, builder: SessionRequestBuilder):
        request = CartCheckout(
            cart_items=[
                _item(quantity=2, requires_shipping=True, image_url=f"{BASE}/p1.png")
            ],
            shipping_cost=Decimal("15"),
        )

        spec = builder.build(request)

        assert spec.mode is SessionMode.PAYMENT
        assert [(li.name, li.unit_amount, li.quantity) for li in spec.line_items] == [
            ("Camiseta Delvind", 10000, 2),
            (SHIPPING_LINE_NAME, 1500, 1),
        ]
        assert spec.line_items[0].image_refs == [f"{BASE}/p1.png"]
        assert spec.line_items[1].image_refs == []
        assert spec.currency == "brl"
        assert spec.shipping_countries == ["BR"]
        assert spec.payment_method_types == ["card", "boleto"]

    def test_promo_price_overrides_price(self, builder: SessionRequestBuilder):
        request = CartCheckout(cart_items=[_item(promo_price=Decimal("79.90"))])

        spec = builder.build(request)

        assert spec.line_items[0].unit_amount == 7990

    def test_zero_promo_price_is_ignored(self, builder: SessionRequestBuilder):
        request = CartCheckout(cart_items=[_item(promo_price=Decimal("0"))])

        spec = builder.build(request)

        assert spec.line_items[0].unit_amount == 10000

    def test_no_shipping_line_when_nothing_ships(self, builder: SessionRequestBuilder):
        request = CartCheckout(cart_items=[_item()], shipping_cost=Decimal("15"))

        spec = builder.build(request)

        assert len(spec.line_items) == 1
        assert spec.shipping_countries == []

    def test_no_shipping_line_when_all_shipped_items_ship_free(
        self, builder: SessionRequestBuilder
    ):
        request = CartCheckout(
            cart_items=[_item(requires_shipping=True, free_shipping=True)],
            shipping_cost=Decimal("15"),
        )

        spec = builder.build(request)

        assert [li.name for li in spec.line_items] == ["Camiseta Delvind"]
        # Address is still collected for the shipped product
        assert spec.shipping_countries == ["BR"]

    def test_redirect_urls(self, builder: SessionRequestBuilder):
        spec = builder.build(CartCheckout(cart_items=[_item()]))

        assert spec.success_url == f"{BASE}/loja/success?session_id={{CHECKOUT_SESSION_ID}}"
        assert spec.cancel_url == f"{BASE}/loja/cart"
        assert spec.customer_email is None

    def test_metadata_carries_source_and_products(self, builder: SessionRequestBuilder):
        request = CartCheckout(
            cart_items=[_item(), _item(id="p2", name="Caneca", price=Decimal("35"))]
        )

        spec = builder.build(request)

        assert spec.metadata["source"] == "store"
        assert json.loads(spec.metadata["products"]) == [
            {"id": "p1", "name": "Camiseta Delvind", "isSubscription": False},
            {"id": "p2", "name": "Caneca", "isSubscription": False},
        ]

    def test_empty_cart_rejected(self, builder: SessionRequestBuilder):
        with pytest.raises(CheckoutValidationError) as exc_info:
            builder.build(CartCheckout(cart_items=[]))

        assert exc_info.value.code == ErrorCode.CART_EMPTY


class TestSubscriptionCart:
    """Tests for carts holding a subscription product."""

    def test_subscription_with_one_time_items(self, builder: SessionRequestBuilder):
        request = CartCheckout(
            cart_items=[
                _item(id="p2", name="Caneca", price=Decimal("35")),
                _item(
                    id="s1",
                    name="Plano Mensal",
                    price=Decimal("0"),
                    is_subscription=True,
                    subscription_price=Decimal("99.90"),
                    quantity=3,
                ),
            ]
        )

        spec = builder.build(request)

        assert spec.mode is SessionMode.SUBSCRIPTION
        first, second = spec.line_items
        assert (first.name, first.unit_amount, first.quantity) == ("Plano Mensal", 9990, 1)
        assert first.recurring_interval == "month"
        assert (second.name, second.unit_amount, second.recurring_interval) == (
            "Caneca",
            3500,
            None,
        )

    def test_subscription_options(self, builder: SessionRequestBuilder, settings: Settings):
        request = CartCheckout(
            cart_items=[
                _item(is_subscription=True, subscription_price=Decimal("49.90")),
            ]
        )

        spec = builder.build(request)

        assert spec.require_three_d_secure is True
        assert spec.boleto_expires_after_days == settings.boleto_grace_days
        assert spec.always_collect_payment_method is True
        assert json.loads(spec.metadata["products"])[0]["isSubscription"] is True

    def test_one_time_cart_has_no_subscription_options(self, builder: SessionRequestBuilder):
        spec = builder.build(CartCheckout(cart_items=[_item()]))

        assert spec.require_three_d_secure is False
        assert spec.boleto_expires_after_days is None
        assert spec.always_collect_payment_method is False

    def test_subscription_without_price_rejected(self, builder: SessionRequestBuilder):
        request = CartCheckout(cart_items=[_item(is_subscription=True)])

        with pytest.raises(CheckoutValidationError) as exc_info:
            builder.build(request)

        assert exc_info.value.code == ErrorCode.SUBSCRIPTION_PRICE_MISSING
        assert exc_info.value.details == {"product_id": "p1"}

    def test_two_subscriptions_rejected(self, builder: SessionRequestBuilder):
        request = CartCheckout(
            cart_items=[
                _item(id="s1", is_subscription=True, subscription_price=Decimal("10")),
                _item(id="s2", is_subscription=True, subscription_price=Decimal("20")),
            ]
        )

        with pytest.raises(CheckoutValidationError) as exc_info:
            builder.build(request)

        assert exc_info.value.code == ErrorCode.MULTIPLE_SUBSCRIPTIONS


class TestInvoiceCheckout:
    """Tests for finance invoice sessions."""

    def test_invoice_session(self, builder: SessionRequestBuilder):
        request = InvoiceCheckout(
            finance_record_id="f1",
            amount=Decimal("250.5"),
            title="Plano X",
            customer_email="a@b.com",
        )

        spec = builder.build(request)

        assert spec.mode is SessionMode.PAYMENT
        assert len(spec.line_items) == 1
        assert (spec.line_items[0].name, spec.line_items[0].unit_amount) == ("Plano X", 25050)
        assert spec.customer_email == "a@b.com"
        assert spec.metadata == {"source": "finance", "financeRecordId": "f1"}
        assert spec.success_url == (
            f"{BASE}/dashboard/payments?status=success&session_id={{CHECKOUT_SESSION_ID}}"
        )
        assert spec.cancel_url == f"{BASE}/dashboard/payments?status=cancelled"
        assert spec.shipping_countries == []


class TestRequiresShippingCharge:
    """Tests for requires_shipping_charge()."""

    def test_zero_cost_never_charges(self):
        assert not requires_shipping_charge([_item(requires_shipping=True)], Decimal("0"))

    def test_mixed_free_and_paid_shipping_charges(self):
        items = [
            _item(requires_shipping=True, free_shipping=True),
            _item(id="p2", requires_shipping=True),
        ]

        assert requires_shipping_charge(items, Decimal("20"))
