"""Standard error codes for checkout and webhook processing.

Every failure that crosses the HTTP boundary is raised as a ``PaymentError``
(or one of its subclasses) carrying an ``ErrorCode``. The API layer maps the
code to an HTTP status; messages are shown to the storefront user as-is.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes for the payments service."""

    # Checkout validation (ERR_CHK_001-ERR_CHK_007)
    CART_EMPTY = "ERR_CHK_001"
    SUBSCRIPTION_PRICE_MISSING = "ERR_CHK_002"
    MULTIPLE_SUBSCRIPTIONS = "ERR_CHK_003"
    INVOICE_DATA_INCOMPLETE = "ERR_CHK_004"
    INVALID_CHECKOUT_REQUEST = "ERR_CHK_005"
    AMBIGUOUS_CHECKOUT_REQUEST = "ERR_CHK_006"
    CART_TOO_LARGE = "ERR_CHK_007"

    # Configuration (ERR_CFG_001)
    MISSING_SECRET = "ERR_CFG_001"

    # Stripe (ERR_STRIPE_001-ERR_STRIPE_002)
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    STRIPE_API_ERROR = "ERR_STRIPE_002"

    # Reconciliation (ERR_REC_001-ERR_REC_002)
    ORDER_CONTACT_MISSING = "ERR_REC_001"
    PERSISTENCE_FAILED = "ERR_REC_002"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CART_EMPTY: "O carrinho está vazio.",
    ErrorCode.SUBSCRIPTION_PRICE_MISSING: "O produto de assinatura não possui preço de assinatura.",
    ErrorCode.MULTIPLE_SUBSCRIPTIONS: "Só é possível assinar um plano por compra.",
    ErrorCode.INVOICE_DATA_INCOMPLETE: "Dados da fatura incompletos.",
    ErrorCode.INVALID_CHECKOUT_REQUEST: "Requisição de pagamento inválida.",
    ErrorCode.AMBIGUOUS_CHECKOUT_REQUEST: "Envie os dados do carrinho ou da fatura, não ambos.",
    ErrorCode.CART_TOO_LARGE: "O carrinho possui itens demais para um único pagamento.",
    ErrorCode.MISSING_SECRET: "Configuração de pagamento ausente.",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Assinatura do webhook inválida.",
    ErrorCode.STRIPE_API_ERROR: "Erro ao comunicar com o provedor de pagamento.",
    ErrorCode.ORDER_CONTACT_MISSING: "Sessão de pagamento sem e-mail do cliente.",
    ErrorCode.PERSISTENCE_FAILED: "Falha ao registrar o pagamento.",
}


class ErrorResponse(BaseModel):
    """Standard JSON body for failed requests."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, str]] = None


class PaymentError(Exception):
    """Base exception for checkout and webhook failures.

    ``message`` overrides the standard message for the code, which is how
    upstream Stripe error text is forwarded unchanged.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the API error body."""
        return ErrorResponse(
            error=self.message,
            error_code=self.code,
            details=self.details,
        )


class CheckoutValidationError(PaymentError):
    """Raised when a checkout request is malformed or incomplete."""


class ConfigurationError(PaymentError):
    """Raised when a required secret or setting is missing."""

    def __init__(self, secret_name: str):
        super().__init__(ErrorCode.MISSING_SECRET, details={"secret": secret_name})
        self.secret_name = secret_name


class ReconciliationError(PaymentError):
    """Raised when a verified webhook event cannot be applied to storage."""
