# bot/systems/seasons.py
"""Seasonal windows given as "MM-DD" pairs; a window may wrap the new year."""
from __future__ import annotations

from datetime import date, datetime
from typing import Tuple


def mmdd(day: date) -> str:
    return day.strftime("%m-%d")


def in_window(today: date, start: str, end: str) -> bool:
    current = mmdd(today)
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def days_until(today: date, start: str) -> int:
    """Whole days until the next occurrence of ``start`` (0 if today)."""
    month, day = (int(p) for p in start.split("-"))
    target = _safe_date(today.year, month, day)
    if target < today:
        target = _safe_date(today.year + 1, month, day)
    return (target - today).days


def _safe_date(year: int, month: int, day: int) -> date:
    # 02-29 in a non-leap year lands on 02-28
    try:
        return date(year, month, day)
    except ValueError:
        return date(year, month, day - 1)


def is_refresh_hour(now: datetime, refresh_time: Tuple[int, int]) -> bool:
    hour, minute = refresh_time
    return now.hour == hour and now.minute >= minute
