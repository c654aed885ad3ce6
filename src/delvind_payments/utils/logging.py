"""Logging for the checkout API and webhook worker.

Every record carries the request's correlation id, set by
``CorrelationIdMiddleware`` from the ``X-Correlation-ID`` header. Checkout
and webhook helpers render their context as ``key=value`` pairs after a
headline and also pass it as ``extra`` for structured handlers.

Usage:
    logger = get_logger(__name__)
    log_webhook_event(logger, "checkout.session.completed", "evt_1", result="success")
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context, generating one if absent.

    Args:
        correlation_id: Incoming id, usually from the request header.

    Returns:
        The id now in effect.
    """
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``correlation_id`` onto every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each line with ``[<correlation id>]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: int = logging.INFO) -> None:
    """Install the structured formatter and correlation filter on the root logger.

    Calling it again only re-applies the formatter; filters are not duplicated.

    Args:
        level: Root log level.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))
        _ensure_filter(handler)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with the correlation filter attached."""
    logger = logging.getLogger(name)
    _ensure_filter(logger)
    return logger


def _ensure_filter(target: logging.Filterer) -> None:
    if not any(isinstance(f, CorrelationIdFilter) for f in target.filters):
        target.addFilter(CorrelationIdFilter())


def _emit(logger: logging.Logger, level: int, headline: str, context: dict[str, Any]) -> None:
    fields = [f"{key}={value}" for key, value in context.items() if value is not None]
    logger.log(level, " | ".join([headline, *fields]), extra=context)


def log_checkout_operation(
    logger: logging.Logger,
    operation: str,
    *,
    source: str | None = None,
    session_id: str | None = None,
    amount_cents: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one checkout step; ERROR when ``error`` is given, INFO otherwise.

    Args:
        logger: Logger to write to.
        operation: Step name, e.g. ``create_checkout_session``.
        source: ``store`` or ``finance``.
        session_id: Stripe session id once known.
        amount_cents: Session total in centavos.
        error: Failure message, usually Stripe's.
        **extra: Further fields, e.g. ``mode`` or ``stripe_error_code``.
    """
    context: dict[str, Any] = {
        "source": source,
        "session_id": session_id,
        "amount_cents": amount_cents,
        "error": error,
        **extra,
    }
    level = logging.ERROR if error else logging.INFO
    _emit(logger, level, f"Checkout: {operation}", context)


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    session_id: str | None = None,
    record_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a webhook delivery at a level matching its result.

    ``error`` logs at ERROR, ``duplicate`` and ``skipped`` at WARNING,
    anything else (``received``, ``success``) at INFO.
    """
    context: dict[str, Any] = {
        "result": result,
        "record_id": record_id,
        "session_id": session_id,
        "error": error,
        **extra,
    }
    if result == "error":
        level = logging.ERROR
    elif result in ("duplicate", "skipped"):
        level = logging.WARNING
    else:
        level = logging.INFO
    _emit(logger, level, f"Webhook {event_type} ({event_id})", context)
