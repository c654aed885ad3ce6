"""Enumeration types for Delvind payment data models."""

from enum import Enum


class CheckoutSource(str, Enum):
    """Origin of a checkout session, echoed back in session metadata."""

    STORE = "store"
    FINANCE = "finance"


class SessionMode(str, Enum):
    """Stripe Checkout session mode."""

    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"


class OrderStatus(str, Enum):
    """Fulfilment status of a storefront order."""

    PENDING = "Pendente"
    PROCESSING = "Processando"
    SHIPPED = "Enviado"
    DELIVERED = "Entregue"
    CANCELLED = "Cancelado"


class FinanceStatus(str, Enum):
    """Billing status of a finance record."""

    TO_BILL = "A Cobrar"
    BILLED = "Cobrança Enviada"
    PAYMENT_SUBMITTED = "Pagamento Enviado"  # Awaiting manual review
    RECEIVED = "Recebido"
    OVERDUE = "Atrasado"


class FinanceEntryType(str, Enum):
    """How a finance record was created."""

    BUDGET = "budget"
    MANUAL = "manual"
    INSTALLMENT = "installment"
    SUBSCRIPTION = "subscription"


class ProcessingResult(str, Enum):
    """Outcome of processing a webhook event."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"
    ERROR = "error"
