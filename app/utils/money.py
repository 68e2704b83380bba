"""
Money helpers for splitting expenses.

All amounts are handled as Decimal and quantized to cents. Shares produced by
split_exact always add back up to the original total, with any rounding
remainder given to the first share.

Example Usage:
    from app.utils.money import split_exact

    split_exact(Decimal("10.00"), 3)
    # [Decimal('3.34'), Decimal('3.33'), Decimal('3.33')]
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List

CENTS = Decimal('0.01')


def round_decimal(value: Decimal, precision: Decimal = CENTS) -> Decimal:
    """
    Round a Decimal value to the specified precision (half up).

    Args:
        value: The value to round, int and str are accepted too
        precision: The precision to round to (default: 0.01 for cents)

    Returns:
        Rounded Decimal value

    Example:
        >>> round_decimal(Decimal("33.335"))
        Decimal('33.34')
    """
    return Decimal(str(value)).quantize(precision, rounding=ROUND_HALF_UP)


def split_exact(total: Decimal, n: int) -> List[Decimal]:
    """
    Split total into n shares that sum exactly to total.

    Every share gets round(total / n) and the remainder left over by rounding
    goes to index 0, so the same inputs always give the same shares.

    Args:
        total: Amount to split
        n: Number of shares, must be positive

    Returns:
        List of n Decimal shares

    Raises:
        ValueError: If n is not positive
    """
    if n <= 0:
        raise ValueError(f"Cannot split an amount into {n} shares")

    total = round_decimal(total)
    base = round_decimal(total / Decimal(n))
    remainder = round_decimal(total - base * n)

    shares = [base] * n
    shares[0] = round_decimal(base + remainder)
    return shares
