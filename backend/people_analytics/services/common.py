"""Guarded arithmetic and time-window helpers shared by the analytics engines."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, TypeVar, Union

T = TypeVar("T")

Number = Union[int, float, Decimal]


def resolve_as_of(as_of: Optional[datetime] = None) -> datetime:
    """Reference instant for a computation; defaults to now (UTC)."""
    return as_of if as_of is not None else datetime.now(timezone.utc)


def to_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def window_start(as_of: datetime, days: int) -> date:
    return to_date(as_of) - timedelta(days=days)


def in_window(moment: Union[date, datetime], start: date, end: date) -> bool:
    day = to_date(moment)
    return start <= day <= end


def within(items: Iterable[T], key, start: date, end: date) -> list:
    """Items whose ``key(item)`` date falls inside ``[start, end]``."""
    return [item for item in items if in_window(key(item), start, end)]


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def safe_div(numerator: Number, denominator: Number, default: float = 0.0) -> float:
    if not denominator:
        return default
    return float(numerator) / float(denominator)


def pct(part: Number, whole: Number, default: float = 0.0) -> float:
    """``part / whole × 100`` or ``default`` when ``whole`` is zero."""
    if not whole:
        return default
    return float(part) / float(whole) * 100


def newest_first(items: Iterable[T], key) -> list:
    """Stable sort, most recent first."""
    return sorted(items, key=key, reverse=True)
