"""Conversion between decimal prices and Stripe minor currency units (centavos)."""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def to_minor_units(amount: Decimal | float | int | str) -> int:
    """Convert a decimal price to integer minor units.

    Rounds ``amount * 100`` half-up to the nearest integer. Floats go through
    ``str`` first so that e.g. ``19.99`` is not read as ``19.989999...``.

    Args:
        amount: Price in major units (e.g., 250.5 for R$ 250,50)

    Returns:
        Amount in centavos (e.g., 25050)
    """
    if isinstance(amount, float):
        amount = str(amount)
    value = Decimal(amount) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """Convert integer minor units back to a two-decimal ``Decimal``.

    Args:
        amount: Amount in centavos

    Returns:
        Amount in major units, quantized to cents
    """
    return (Decimal(amount) / 100).quantize(CENTS)
