"""FastAPI exception handlers for converting PaymentError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: checkout validation failures, invalid webhook signatures
- 500 Internal Server Error: missing configuration, persistence failures
- 502 Bad Gateway: Stripe rejected the request (Stripe's message forwarded)

Usage:
    from delvind_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from delvind_payments.models.errors import ErrorCode, PaymentError

logger = logging.getLogger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Checkout validation -> 400
    ErrorCode.CART_EMPTY: HTTP_400_BAD_REQUEST,
    ErrorCode.SUBSCRIPTION_PRICE_MISSING: HTTP_400_BAD_REQUEST,
    ErrorCode.MULTIPLE_SUBSCRIPTIONS: HTTP_400_BAD_REQUEST,
    ErrorCode.INVOICE_DATA_INCOMPLETE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CHECKOUT_REQUEST: HTTP_400_BAD_REQUEST,
    ErrorCode.AMBIGUOUS_CHECKOUT_REQUEST: HTTP_400_BAD_REQUEST,
    ErrorCode.CART_TOO_LARGE: HTTP_400_BAD_REQUEST,
    # Authenticity -> 400 (Stripe does not retry 4xx)
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    # Upstream gateway -> 502
    ErrorCode.STRIPE_API_ERROR: HTTP_502_BAD_GATEWAY,
    # Server-side -> 500 (Stripe retries webhooks on 5xx)
    ErrorCode.MISSING_SECRET: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.ORDER_CONTACT_MISSING: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.PERSISTENCE_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    """Handle PaymentError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The PaymentError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code.value)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The uncaught exception

    Returns:
        JSONResponse with 500 status and generic error message.
    """
    logger.exception("Unhandled exception: %s", exc)

    # Don't expose internal details
    error_response = {
        "success": False,
        "error": "Erro interno. Tente novamente mais tarde.",
        "error_code": "ERR_INTERNAL",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(PaymentError, payment_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
