"""Checkout request and gateway session models.

Requests arrive from the storefront in camelCase JSON; attributes are
snake_case. Monetary inputs are ``Decimal`` in reais, gateway amounts are
``int`` centavos.
"""

from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .enums import CheckoutSource, SessionMode


class CamelModel(BaseModel):
    """Base model reading and writing camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartLineInput(CamelModel):
    """One product line of a storefront cart."""

    id: str = Field(..., min_length=1, description="Product ID")
    name: str = Field(..., min_length=1, description="Product name")
    price: Decimal = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("price", "unitPrice"),
        description="Unit price in BRL",
    )
    promo_price: Decimal | None = Field(
        default=None, ge=0, description="Promotional unit price, overrides price"
    )
    quantity: int = Field(default=1, ge=1)
    image_url: str | None = Field(default=None)
    requires_shipping: bool = False
    free_shipping: bool = False
    is_subscription: bool = False
    subscription_price: Decimal | None = Field(
        default=None, ge=0, description="Monthly price for subscription products"
    )

    @property
    def effective_price(self) -> Decimal:
        """Promotional price when set, otherwise the regular price."""
        if self.promo_price:
            return self.promo_price
        return self.price


class CartCheckout(CamelModel):
    """Checkout of the storefront cart."""

    cart_items: list[CartLineInput]
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def source(self) -> CheckoutSource:
        return CheckoutSource.STORE


class InvoiceCheckout(CamelModel):
    """Payment of a single existing finance record."""

    finance_record_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    title: str = Field(..., min_length=1)
    customer_email: EmailStr

    @property
    def source(self) -> CheckoutSource:
        return CheckoutSource.FINANCE


CheckoutRequest = CartCheckout | InvoiceCheckout


class ProductManifestEntry(CamelModel):
    """Minimal product reference stored in session metadata."""

    id: str
    name: str = ""
    is_subscription: bool = False


class LineItem(BaseModel):
    """A priced, quantified entry of a gateway session."""

    model_config = ConfigDict(strict=True)

    name: str
    image_refs: list[str] = Field(default_factory=list)
    unit_amount: int = Field(..., ge=0, description="Unit amount in centavos")
    quantity: int = Field(default=1, ge=1)
    recurring_interval: Literal["month"] | None = None


class GatewaySessionSpec(BaseModel):
    """Everything sent to Stripe to open a Checkout Session."""

    model_config = ConfigDict(strict=True)

    line_items: list[LineItem]
    currency: str
    mode: SessionMode
    success_url: str
    cancel_url: str
    customer_email: str | None = None
    metadata: dict[str, str]
    payment_method_types: list[str] = Field(default_factory=lambda: ["card"])
    shipping_countries: list[str] = Field(
        default_factory=list,
        description="Collect a shipping address limited to these countries",
    )
    require_three_d_secure: bool = False
    boleto_expires_after_days: int | None = None
    always_collect_payment_method: bool = False


class CheckoutSessionResult(CamelModel):
    """Session identifiers returned to the storefront."""

    session_id: str = Field(..., examples=["cs_test_a1b2c3"])
    session_url: str | None = Field(
        default=None,
        examples=["https://checkout.stripe.com/c/pay/cs_test_a1b2c3"],
    )
