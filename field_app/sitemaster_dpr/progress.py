"""Completion metrics derived from the progress history of a work item."""

from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Iterable, Optional, Protocol

from .models import AggregatedProgress

PERCENTAGE_UNIT = "percentage"
PLACEHOLDER = "-"

_DECIMAL_COMMA = re.compile(r"\d+,\d{1,2}")


class HistoryEntry(Protocol):
    quantity: Any
    timestamp: Optional[dt.datetime]


def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _positive_quantity(value: Any) -> float:
    number = _finite_number(value)
    if number is None or number <= 0:
        return 0.0
    return number


def local_date(value: dt.date | dt.datetime) -> dt.date:
    """Calendar date of ``value`` in local time; naive datetimes are taken as local."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def aggregate(
    history: Iterable[HistoryEntry],
    percent_complete: Optional[float],
    today: dt.date | dt.datetime,
) -> AggregatedProgress:
    """Sum the logged quantities and derive total/pending from the percentage.

    Total and pending are only derived from a finite, positive
    ``percent_complete``. Pending is not clamped and may be negative when the
    logged quantity overstates the percentage.
    """
    today_date = local_date(today)
    completed = 0.0
    today_total = 0.0
    for entry in history:
        quantity = _positive_quantity(getattr(entry, "quantity", None))
        if not quantity:
            continue
        completed += quantity
        timestamp = getattr(entry, "timestamp", None)
        if isinstance(timestamp, dt.datetime) and local_date(timestamp) == today_date:
            today_total += quantity

    progress = AggregatedProgress(completed_quantity=completed, today_quantity=today_total)
    percent = _finite_number(percent_complete)
    if percent is not None and percent > 0:
        progress.total_quantity = completed * 100 / percent
        progress.pending_quantity = progress.total_quantity - completed
    return progress


def cap_quantity(proposed: float, pending: Optional[float]) -> float:
    """Clamp ``proposed`` to the pending quantity when it is known."""
    if pending is None:
        return proposed
    limit = max(pending, 0.0)
    if proposed > limit:
        return limit
    return proposed


def parse_quantity(text: Any) -> float:
    """Parse a typed quantity; anything unusable counts as zero."""
    if text is None:
        return 0.0
    if isinstance(text, str):
        text = text.strip()
        if not text:
            return 0.0
        if "," in text:
            # a comma is only accepted as the single decimal separator
            if not _DECIMAL_COMMA.fullmatch(text):
                return 0.0
            text = text.replace(",", ".")
        try:
            value = float(text)
        except ValueError:
            return 0.0
    else:
        value = _finite_number(text)
        if value is None:
            return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def quantity_text(value: float) -> str:
    """Exact text for a quantity, so parsing it back gives the same value."""
    if value <= 0:
        return "0"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_quantity(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    if value <= 0:
        return "0"
    return f"{value:.2f}".rstrip("0").rstrip(".")


def remaining_label(pending: Optional[float]) -> str:
    if pending is None:
        return PLACEHOLDER
    return f"{format_quantity(pending)} remaining"


def resolve_percent(percent_complete: Optional[float], work_completion: Any = None) -> Optional[float]:
    """Pick the completion percentage of a record.

    ``percent_complete`` wins; ``work_completion.value`` is only used when its
    unit is a percentage.
    """
    percent = _finite_number(percent_complete)
    if percent is not None:
        return percent
    if work_completion is None:
        return None
    unit = getattr(work_completion, "unit", None)
    if isinstance(unit, str) and unit.strip().lower() == PERCENTAGE_UNIT:
        return _finite_number(getattr(work_completion, "value", None))
    return None


def completion_fraction(percent_complete: Optional[float], work_completion: Any = None) -> float:
    """Progress bar fill between 0 and 1."""
    percent = resolve_percent(percent_complete, work_completion)
    if percent is None:
        return 0.0
    return min(max(percent / 100, 0.0), 1.0)


def percent_label(percent_complete: Optional[float], work_completion: Any = None) -> str:
    percent = resolve_percent(percent_complete, work_completion) or 0.0
    return f"{min(max(round(percent), 0), 100)}%"


__all__ = [
    "aggregate",
    "cap_quantity",
    "completion_fraction",
    "format_quantity",
    "local_date",
    "parse_quantity",
    "percent_label",
    "quantity_text",
    "remaining_label",
    "resolve_percent",
]
