"""Formatting helpers for templates and CLI output."""
from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import Union, Optional


def money_from_cents(value: Union[int, float, Decimal, str, None], currency_symbol: str = '$') -> str:
    """
    Format an amount stored in cents as dollars.

    Examples:
        money_from_cents(123456) -> "$1,234.56"
        money_from_cents(None) -> "-"
    """
    if value is None or value == "":
        return "-"
    try:
        cents = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"
    dollars = (cents / 100).quantize(Decimal('0.01'))
    sign = '-' if dollars < 0 else ''
    return f"{sign}{currency_symbol}{abs(dollars):,.2f}"


def datetime_short(value: Optional[datetime]) -> str:
    """Format datetime as YYYY-MM-DD HH:MM."""
    if value is None:
        return "-"
    return value.strftime('%Y-%m-%d %H:%M')


def percent(value: Optional[float]) -> str:
    """Format a 0..1 similarity score as a percentage with one decimal."""
    if value is None:
        return "-"
    return f"{value * 100:.1f}%"
