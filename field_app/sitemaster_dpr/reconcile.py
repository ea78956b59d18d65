"""Read path: turn a validated record into what the task screens display."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .activity import build_activity_feed
from .models import ActivityEvent, AggregatedProgress, CanonicalStatus
from .progress import aggregate, completion_fraction, resolve_percent
from .schemas import DprRecord
from .status import normalize_status
from .submitter import Clock, StatusEditor, Updater

RECENT_LIMIT = 6


@dataclass(slots=True)
class TaskSnapshot:
    record: DprRecord
    status: CanonicalStatus
    progress: AggregatedProgress
    completion_fraction: float
    feed: List[ActivityEvent] = field(default_factory=list)


def reconcile_record(record: DprRecord, today: dt.date | dt.datetime) -> TaskSnapshot:
    percent = resolve_percent(record.percent_complete, record.work_completion)
    return TaskSnapshot(
        record=record,
        status=normalize_status(record.raw_status),
        progress=aggregate(record.status_history, percent, today),
        completion_fraction=completion_fraction(record.percent_complete, record.work_completion),
        feed=build_activity_feed(record.creation, record.status_history),
    )


def _updated_key(record: DprRecord) -> float:
    timestamp = record.last_updated
    if timestamp is None:
        return float("-inf")
    try:
        return timestamp.timestamp()
    except (OverflowError, OSError, ValueError):
        return float("-inf")


def recent_records(records: Iterable[DprRecord], limit: int = RECENT_LIMIT) -> List[DprRecord]:
    """Most recently updated records first; records without a timestamp go last."""
    if limit <= 0:
        return []
    return sorted(records, key=_updated_key, reverse=True)[:limit]


def editor_for(snapshot: TaskSnapshot, updater: Updater, clock: Optional[Clock] = None) -> StatusEditor:
    """Create a status editor that appends to the snapshot's feed."""
    record = snapshot.record
    return StatusEditor(
        record_id=record.id,
        project_id=(record.project_id.id or "") if record.project_id else "",
        activity_id=(record.activity_id.id or "") if record.activity_id else "",
        current_status=snapshot.status,
        progress=snapshot.progress,
        feed=snapshot.feed,
        updater=updater,
        clock=clock,
    )


__all__ = ["RECENT_LIMIT", "TaskSnapshot", "editor_for", "recent_records", "reconcile_record"]
