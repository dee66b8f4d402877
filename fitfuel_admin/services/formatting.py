from __future__ import annotations

from datetime import datetime
from typing import Optional


def format_currency(value: Optional[float]) -> str:
    if value is None:
        return "$0.00"
    return f"${value:,.2f}"


def format_datetime(value: Optional[datetime]) -> str:
    """Display form, e.g. ``Mar 5, 2024, 09:07``."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value:%Y, %H:%M}"


def chart_date_label(value: datetime) -> str:
    """Axis label, e.g. ``3/5``."""
    return f"{value.month}/{value.day}"


def format_rate(value: Optional[float]) -> str:
    return f"{(value or 0.0):.1f}%"
