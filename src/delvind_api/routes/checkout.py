"""Checkout endpoints for the storefront and the client finance dashboard.

Provides REST endpoints for:
- Opening a Stripe Checkout session for a cart or an invoice (public)
- Acknowledging the success redirect (public)

Neither endpoint changes order or finance state. Payment is only ever
confirmed by a verified webhook.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_200_OK

from delvind_api.dependencies import get_checkout_service
from delvind_api.models import CheckoutRequestBody, CheckoutSuccessResponse
from delvind_payments.models.checkout import CheckoutSessionResult
from delvind_payments.models.errors import ErrorResponse
from delvind_payments.services.checkout_service import CheckoutService

router = APIRouter(tags=["checkout"])


@router.post(
    "/checkout",
    summary="Create checkout session",
    description="""
Open a Stripe Checkout session and return its hosted URL.

**Public endpoint** - no authentication required.

Send exactly one of:
- **Cart**: `cartItems` (+ optional `shippingCost`). At most one item may be a
  subscription; if present the session is opened in subscription mode.
- **Invoice**: `financeRecordId`, `amount`, `title`, `customerEmail`.

**Notes:**
- Amounts are in BRL, converted to centavos with half-up rounding
- Card and boleto are offered; Brazilian shipping address is collected when any item ships
- Stripe rejections are returned as 502 with Stripe's own message
""",
    response_description="Stripe session id and redirect URL",
    response_model=CheckoutSessionResult,
    status_code=HTTP_200_OK,
    responses={
        200: {"description": "Session created"},
        400: {"description": "Invalid or ambiguous checkout request", "model": ErrorResponse},
        500: {"description": "Stripe credentials not configured", "model": ErrorResponse},
        502: {"description": "Stripe rejected the session", "model": ErrorResponse},
    },
)
async def create_checkout_session(
    body: CheckoutRequestBody,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionResult:
    """Create a checkout session for a cart or an invoice."""
    return checkout.create_session(body.to_checkout_request)


@router.get(
    "/checkout/success",
    summary="Acknowledge checkout redirect",
    description="""
Called by the storefront success page after Stripe redirects back.

Returns `clearCart: true` when a session id is present so the client can
empty its local cart. This is **not** a payment confirmation.
""",
    response_model=CheckoutSuccessResponse,
)
async def checkout_success(
    session_id: str | None = Query(default=None),
) -> CheckoutSuccessResponse:
    """Tell the storefront whether to clear its cart."""
    return CheckoutSuccessResponse(session_id=session_id, clear_cart=bool(session_id))
