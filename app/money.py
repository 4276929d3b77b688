"""
Money conversions between the API's Decimal amounts and stored integer cents.

Balances are persisted as integer cents (e.g., 10.50 is stored as 1050) so
every addition and subtraction is exact. The API speaks Decimal with a fixed
two-digit scale. Binary floats are never involved on either side.
"""

from decimal import Decimal

from app.exceptions import InvalidCardOperationError

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """
    Convert a Decimal amount to integer cents.

    Raises:
        InvalidCardOperationError: If the amount has more than two decimal
            places or is not a finite number.
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    if not amount.is_finite():
        raise InvalidCardOperationError("Amount must be a finite number.")
    cents = amount * 100
    if cents != cents.to_integral_value():
        raise InvalidCardOperationError("Amount can't have more than two decimal places.")
    return int(cents)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a Decimal quantized to 0.01."""
    return (Decimal(cents) / 100).quantize(CENT)
