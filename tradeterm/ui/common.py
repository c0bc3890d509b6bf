"""Shared UI helpers.

This module contains pure formatting helpers used by the render functions.
Keep it dependency-light and free of IBKR side effects.
"""

from __future__ import annotations

from datetime import date, datetime


# region Formatting Helpers
def _fmt_qty(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def _fmt_money(value: float) -> str:
    return f"{value:,.2f}"


def _fmt_quote(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:,.2f}"


def _fmt_volume(value: float | None) -> str:
    if value is None:
        return "n/a"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return _fmt_qty(value)


def _fmt_time(value: datetime | None) -> str:
    if value is None:
        return "n/a"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _fmt_date(value: date | None) -> str:
    if value is None:
        return "n/a"
    return value.strftime("%Y-%m-%d")
# endregion
