"""Encoding of the product manifest carried in Stripe session metadata.

Stripe echoes session metadata back verbatim in webhook events, and it is the
only place the webhook side can recover which products were bought. Values
are limited to 500 characters, so only id, name and subscription flag are
stored, as compact JSON.
"""

import json
import logging
from typing import Any, Iterable

from delvind_payments.models.checkout import ProductManifestEntry
from delvind_payments.models.errors import CheckoutValidationError, ErrorCode

logger = logging.getLogger(__name__)

STRIPE_METADATA_VALUE_LIMIT = 500


def _dumps(entries: list[dict[str, Any]]) -> str:
    return json.dumps(entries, separators=(",", ":"), ensure_ascii=False)


def encode_product_manifest(entries: Iterable[ProductManifestEntry]) -> str:
    """Serialize the manifest, dropping names if it would exceed Stripe's limit.

    Args:
        entries: Products in the cart

    Returns:
        Compact JSON string no longer than ``STRIPE_METADATA_VALUE_LIMIT``

    Raises:
        CheckoutValidationError: If even the id-only manifest is too long.
    """
    full = [entry.model_dump(by_alias=True) for entry in entries]
    encoded = _dumps(full)
    if len(encoded) <= STRIPE_METADATA_VALUE_LIMIT:
        return encoded

    logger.warning(
        "Product manifest is %d chars, dropping names to fit metadata limit",
        len(encoded),
    )
    compact = [{"id": e["id"], "isSubscription": e["isSubscription"]} for e in full]
    encoded = _dumps(compact)
    if len(encoded) <= STRIPE_METADATA_VALUE_LIMIT:
        return encoded

    raise CheckoutValidationError(
        ErrorCode.CART_TOO_LARGE,
        details={"items": str(len(full))},
    )


def decode_product_manifest(raw: str | None) -> list[ProductManifestEntry]:
    """Parse a manifest produced by ``encode_product_manifest``.

    Malformed input yields an empty list; the order is still recorded.

    Args:
        raw: Metadata value from the webhook session object

    Returns:
        List of manifest entries
    """
    if not raw:
        return []
    try:
        items = json.loads(raw)
        return [ProductManifestEntry.model_validate(item) for item in items]
    except (ValueError, TypeError) as e:
        logger.warning("Could not decode product manifest from metadata: %s", e)
        return []
