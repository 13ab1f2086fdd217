"""
Utility functions for money and settlement dates.
"""
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENTS = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")  # matches the three decimal places stored for quantities


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a loosely typed numeric value to Decimal.
    Returns None for None, blank strings, NaN, infinities and values that
    are not numbers.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        # str() keeps 0.1 as 0.1 instead of the binary expansion
        result = Decimal(str(value))
    else:
        s = str(value).strip().replace(",", "")
        if not s:
            return None
        try:
            result = Decimal(s)
        except InvalidOperation:
            return None

    if not result.is_finite():
        return None
    return result


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_quantity(value: Decimal) -> Decimal:
    """Round a settlement quantity to the stored precision, half away from zero."""
    return Decimal(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def week_ending_date(ticket_date: date, week_end_weekday: int = 4) -> date:
    """
    Return the settlement week-ending date for a ticket date.

    The week ends on ``week_end_weekday`` (Monday=0, Friday=4). A ticket
    dated on that weekday belongs to the week ending the same day.
    """
    days_ahead = (week_end_weekday - ticket_date.weekday()) % 7
    return ticket_date + timedelta(days=days_ahead)
