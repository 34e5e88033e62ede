"""Display formatting for amounts and hours."""

from decimal import Decimal, ROUND_HALF_UP


def format_currency(amount: Decimal) -> str:
    """Format an amount in Swedish style, rounded to whole kronor.

    Example: Decimal("12500.4") -> "12 500 kr"
    """
    whole = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole:,.0f}".replace(",", " ") + " kr"


def format_hours(hours: Decimal) -> str:
    """Format hours with two decimals, e.g. "7.50 h"."""
    return f"{Decimal(hours):.2f} h"
