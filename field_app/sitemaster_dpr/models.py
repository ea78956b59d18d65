"""Data models for the DPR field client."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CanonicalStatus(str, Enum):
    """Normalized work item status, independent of the backend spelling."""

    PENDING = "pending"
    IDLE = "idle"
    WORK_STOPPED = "work stopped"
    COMPLETED = "completed"
    IN_PROGRESS = "in progress"


class ActivityKind(str, Enum):
    SYSTEM = "system"
    STATUS_CHANGE = "status"
    COMMENT = "comment"


class EditorState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"


@dataclass(slots=True)
class AggregatedProgress:
    """Quantities derived from a work item's progress history.

    ``total_quantity`` and ``pending_quantity`` stay ``None`` when no positive
    completion percentage is known.
    """

    completed_quantity: float = 0.0
    today_quantity: float = 0.0
    total_quantity: Optional[float] = None
    pending_quantity: Optional[float] = None


@dataclass(slots=True)
class ActivityEvent:
    """Display-ready entry of the activity feed."""

    id: str
    kind: ActivityKind
    timestamp_label: str
    message: str
    author: Optional[str] = None
    from_status: Optional[CanonicalStatus] = None
    to_status: Optional[CanonicalStatus] = None
    timestamp: Optional[dt.datetime] = None


@dataclass(slots=True)
class StatusChangeSubmission:
    """Draft held by the status editor while it is open."""

    next_status: CanonicalStatus
    note: str = ""
    raw_quantity_input: str = ""


@dataclass(slots=True)
class StatusUpdatePayload:
    project_id: str
    activity_id: str
    todays_progress: float
    date: dt.datetime
    remarks: str
    status: str

    def to_json(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "activityId": self.activity_id,
            "todays_progress": self.todays_progress,
            "date": self.date.isoformat(),
            "remarks": self.remarks,
            "status": self.status,
        }


@dataclass(slots=True)
class SubmissionResult:
    """Outcome of one editor commit.

    ``payload`` is ``None`` when there was nothing to submit. ``discarded`` is
    set when the editor was closed before the update call returned.
    """

    ok: bool
    payload: Optional[StatusUpdatePayload] = None
    event: Optional[ActivityEvent] = None
    error: Optional[str] = None
    discarded: bool = False


__all__ = [
    "ActivityEvent",
    "ActivityKind",
    "AggregatedProgress",
    "CanonicalStatus",
    "EditorState",
    "StatusChangeSubmission",
    "StatusUpdatePayload",
    "SubmissionResult",
]
