"""Display and text-conversion helpers shared by the list view and the exporters."""

from datetime import date, datetime
from typing import Optional


def format_amount(amount: float, decimals: Optional[int] = None) -> str:
    """
    Plain number text for an amount.

    Without ``decimals`` this is the shortest text that round-trips the
    float (so 0.1 + 0.2 renders as 0.30000000000000004), with integral
    values written without a trailing ``.0``. From 1e21 up the exponent
    form is kept, so a huge amount reads ``1e+21`` rather than 22 digits.
    """
    amount = float(amount)
    if decimals is not None:
        return f"{amount:.{decimals}f}"
    if amount.is_integer() and abs(amount) < 1e21:
        return str(int(amount))
    return repr(amount)


def format_currency(amount: float, symbol: str = "₹") -> str:
    """Currency symbol plus two decimals, e.g. ``₹12.50``."""
    return f"{symbol}{amount:.2f}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def format_date(date_text: str) -> str:
    """Render ``2024-01-05`` as ``Jan 5, 2024``."""
    parsed = date.fromisoformat(date_text)
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def get_current_date() -> str:
    """Today's date (UTC) as YYYY-MM-DD."""
    return datetime.utcnow().date().isoformat()
