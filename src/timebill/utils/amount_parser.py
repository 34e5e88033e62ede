"""Amount and hour parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

# Smallest unit of recorded work time
HOUR_GRANULARITY = Decimal("0.25")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles "1200", "1 200,50", "1,200.50", "1200 kr" and "SEK 1200".
    A comma followed by one or two digits at the end is a decimal comma.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"(?i)\s*(kr|sek|:-)\s*", "", amount_str.strip())
    cleaned = cleaned.replace(" ", "").replace("\u00a0", "")

    if re.search(r",\d{1,2}$", cleaned) and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")

    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")


def parse_hours(hours_str: str) -> Decimal:
    """Parse a number of hours, e.g. "1.5", "1,25" or "2:15".

    Raises:
        ValueError: If the value cannot be parsed, is negative, or is not a
            multiple of a quarter hour
    """
    value = hours_str.strip()
    if ":" in value:
        hours_part, _, minutes_part = value.partition(":")
        try:
            hours = Decimal(int(hours_part)) + Decimal(int(minutes_part)) / Decimal(60)
        except ValueError:
            raise ValueError(f"Could not parse hours '{hours_str}'")
    else:
        try:
            hours = Decimal(value.replace(",", "."))
        except InvalidOperation:
            raise ValueError(f"Could not parse hours '{hours_str}'")

    validate_hours(hours)
    return hours


def is_valid_granularity(hours: Decimal) -> bool:
    """Return True if ``hours`` is a whole number of quarter hours."""
    return hours % HOUR_GRANULARITY == 0


def validate_hours(hours: Decimal) -> None:
    """Raise ValueError if hours are negative or not quarter-hour aligned."""
    if hours < 0:
        raise ValueError(f"Hours cannot be negative: {hours}")
    if not is_valid_granularity(hours):
        raise ValueError(f"Hours must be a multiple of {HOUR_GRANULARITY}: {hours}")
