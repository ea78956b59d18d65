"""Activity feed reconstruction from creation metadata and status history."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Iterable, List, Optional, Sequence

from .models import ActivityEvent, ActivityKind, CanonicalStatus
from .schemas import CreationInfo, ProgressEntry
from .status import normalize_status

DEFAULT_STATUS_MESSAGE = "Status changed"
PLACEHOLDER_MESSAGE = "No activity yet"
JUST_NOW = "Just now"
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _sort_key(entry: ProgressEntry) -> float:
    timestamp = entry.timestamp
    if timestamp is None:
        return 0.0
    try:
        return timestamp.timestamp()
    except (OverflowError, OSError, ValueError):
        return 0.0


def _to_local(value: dt.datetime) -> dt.datetime:
    return value.astimezone() if value.tzinfo is not None else value


def timestamp_label(value: Optional[dt.datetime]) -> str:
    """Format like ``Thursday, 8:20 PM``."""
    if value is None:
        return "-"
    value = _to_local(value)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{WEEKDAY_NAMES[value.weekday()]}, {hour}:{value.minute:02d} {suffix}"


def format_day(value: Optional[dt.datetime]) -> str:
    """Format like ``05 Jan``."""
    if value is None:
        return "-"
    value = _to_local(value)
    return f"{value.day:02d} {MONTH_NAMES[value.month - 1]}"


def time_ago(value: Optional[dt.datetime], now: dt.datetime) -> str:
    if value is None:
        return ""
    try:
        delta = now.timestamp() - value.timestamp()
    except (OverflowError, OSError, ValueError):
        return ""
    minutes = int(delta // 60)
    hours = minutes // 60
    days = hours // 24
    if minutes < 1:
        return JUST_NOW
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours} hr ago"
    return f"{days} day{'s' if days > 1 else ''} ago"


def _event_id() -> str:
    return uuid.uuid4().hex


def new_comment_event(message: str, author: str = "You") -> ActivityEvent:
    return ActivityEvent(
        id=_event_id(),
        kind=ActivityKind.COMMENT,
        timestamp_label=JUST_NOW,
        message=message,
        author=author,
    )


def new_status_event(
    from_status: CanonicalStatus,
    to_status: CanonicalStatus,
    message: Optional[str] = None,
) -> ActivityEvent:
    return ActivityEvent(
        id=_event_id(),
        kind=ActivityKind.STATUS_CHANGE,
        timestamp_label=JUST_NOW,
        message=message or DEFAULT_STATUS_MESSAGE,
        from_status=from_status,
        to_status=to_status,
    )


def build_activity_feed(
    creation: Optional[CreationInfo],
    history: Iterable[ProgressEntry],
    comments: Sequence[ActivityEvent] = (),
) -> List[ActivityEvent]:
    """Build the feed shown on the activity tab of a work item.

    History is replayed oldest first so every status change knows the status
    it left. Comments added in this session are appended as given.
    """
    events: List[ActivityEvent] = []

    if creation is not None and creation.timestamp is not None and creation.actor_name:
        events.append(
            ActivityEvent(
                id="created",
                kind=ActivityKind.SYSTEM,
                timestamp_label=timestamp_label(creation.timestamp),
                message=f"{creation.actor_name} created this task",
                timestamp=creation.timestamp,
            )
        )

    previous = CanonicalStatus.IDLE
    for index, entry in enumerate(sorted(history, key=_sort_key)):
        current = normalize_status(entry.status_at_entry)
        remarks = (entry.remarks or "").strip()
        events.append(
            ActivityEvent(
                id=entry.id or f"history-{index}",
                kind=ActivityKind.STATUS_CHANGE,
                timestamp_label=timestamp_label(entry.timestamp),
                message=remarks or DEFAULT_STATUS_MESSAGE,
                from_status=previous,
                to_status=current,
                timestamp=entry.timestamp,
            )
        )
        previous = current

    if not events:
        events.append(
            ActivityEvent(
                id="placeholder",
                kind=ActivityKind.SYSTEM,
                timestamp_label="-",
                message=PLACEHOLDER_MESSAGE,
            )
        )

    events.extend(comments)
    return events


__all__ = [
    "build_activity_feed",
    "format_day",
    "new_comment_event",
    "new_status_event",
    "time_ago",
    "timestamp_label",
]
