"""Money helpers for the shared-expense ledger.

Persisted amounts are int cents (fixed-point, 2 fractional digits).
Reconciliation works on Decimal values expressed in cents and rounds
back to int cents with ROUND_HALF_UP at the very end.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# 0.01 currency units
EPSILON_CENTS = 1

_HUNDRED = Decimal(100)


def to_cents(value: object) -> int:
    """Convert an untrusted currency-unit value ("12.5", 12.5, Decimal) to cents.

    Raises ValueError for None, bool, non-numeric or non-finite input.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        # str() first so 0.1 (float) becomes Decimal("0.1"), not its binary expansion
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a monetary amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return round_cents(amount * _HUNDRED)


def round_cents(amount: Decimal) -> int:
    """Round a Decimal cent amount to whole cents, half away from zero."""
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
