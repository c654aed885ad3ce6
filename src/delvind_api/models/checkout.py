"""API models for checkout and webhook endpoints.

The checkout body accepts either cart fields or invoice fields. Which mode
applies is decided explicitly by ``to_checkout_request``: exactly one group
must be present.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from delvind_payments.models.checkout import (
    CamelModel,
    CartCheckout,
    CartLineInput,
    CheckoutRequest,
    InvoiceCheckout,
)
from delvind_payments.models.enums import ProcessingResult
from delvind_payments.models.errors import CheckoutValidationError, ErrorCode


class CheckoutRequestBody(CamelModel):
    """Request to open a Stripe Checkout session."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "cartItems": [
                        {
                            "id": "p1",
                            "name": "Camiseta Delvind",
                            "price": 100.0,
                            "quantity": 2,
                            "imageUrl": "https://www.delvind.com/img/p1.png",
                            "requiresShipping": True,
                        }
                    ],
                    "shippingCost": 15.0,
                },
                {
                    "financeRecordId": "f1",
                    "amount": 250.5,
                    "title": "Plano X",
                    "customerEmail": "a@b.com",
                },
            ]
        },
    )

    # Cart mode
    cart_items: list[CartLineInput] | None = None
    shipping_cost: Decimal | None = Field(default=None, ge=0)

    # Invoice mode
    finance_record_id: str | None = None
    amount: Decimal | None = None
    title: str | None = None
    customer_email: str | None = None

    def _has_cart_fields(self) -> bool:
        return self.cart_items is not None

    def _has_invoice_fields(self) -> bool:
        return any(
            value is not None
            for value in (self.finance_record_id, self.amount, self.title, self.customer_email)
        )

    def to_checkout_request(self) -> CheckoutRequest:
        """Convert the body into a typed cart or invoice checkout.

        Returns:
            CartCheckout or InvoiceCheckout

        Raises:
            CheckoutValidationError: If neither or both modes are present,
                the cart is empty, or invoice data is incomplete.
        """
        has_cart = self._has_cart_fields()
        has_invoice = self._has_invoice_fields()

        if has_cart and has_invoice:
            raise CheckoutValidationError(ErrorCode.AMBIGUOUS_CHECKOUT_REQUEST)

        if has_cart:
            if not self.cart_items:
                raise CheckoutValidationError(ErrorCode.CART_EMPTY)
            return CartCheckout(
                cart_items=self.cart_items,
                shipping_cost=self.shipping_cost or Decimal("0"),
            )

        if has_invoice:
            if not (self.finance_record_id and self.amount and self.title and self.customer_email):
                raise CheckoutValidationError(ErrorCode.INVOICE_DATA_INCOMPLETE)
            try:
                return InvoiceCheckout(
                    finance_record_id=self.finance_record_id,
                    amount=self.amount,
                    title=self.title,
                    customer_email=self.customer_email,
                )
            except ValidationError as e:
                fields = ",".join(str(err["loc"][-1]) for err in e.errors())
                raise CheckoutValidationError(
                    ErrorCode.INVOICE_DATA_INCOMPLETE,
                    details={"fields": fields},
                ) from e

        raise CheckoutValidationError(ErrorCode.INVALID_CHECKOUT_REQUEST)


class CheckoutSuccessResponse(CamelModel):
    """Acknowledgement for the success redirect page.

    Only tells the storefront to clear its local cart; payment is confirmed
    by the webhook, never by the redirect.
    """

    session_id: str | None = None
    clear_cart: bool


class WebhookResponse(BaseModel):
    """Standard webhook response."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: ProcessingResult
    message: str | None = None
