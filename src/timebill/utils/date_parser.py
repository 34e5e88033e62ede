"""Date parsing utilities."""

import calendar
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(value: str) -> date:
    """Parse a date given on the command line.

    Accepts ISO and free-form dates ("2026-01-15", "15 jan 2026") and the
    relative words today/yesterday/tomorrow, also in Swedish
    (idag/igår/imorgon).

    Raises:
        ValueError: If the value cannot be parsed
    """
    word = value.strip().lower()
    today = date.today()

    offsets = {
        "today": 0,
        "idag": 0,
        "yesterday": -1,
        "igår": -1,
        "tomorrow": 1,
        "imorgon": 1,
    }
    if word in offsets:
        return today + timedelta(days=offsets[word])

    try:
        return date_parser.parse(word).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def month_range(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month.

    Raises:
        ValueError: If month is not between 1 and 12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_range(year: int) -> tuple[date, date]:
    """Return January 1 and December 31 of a year."""
    return date(year, 1, 1), date(year, 12, 31)


def previous_month(reference: date) -> tuple[int, int]:
    """Return (year, month) of the month before ``reference``."""
    earlier = reference - relativedelta(months=1)
    return earlier.year, earlier.month
