"""Utility functions for timebill."""

from timebill.utils.date_parser import parse_date, month_range
from timebill.utils.amount_parser import parse_amount, parse_hours
from timebill.utils.formatting import format_currency, format_hours

__all__ = [
    "parse_date",
    "month_range",
    "parse_amount",
    "parse_hours",
    "format_currency",
    "format_hours",
]
