from __future__ import annotations

from typing import Any, Optional

from sitemaster_dpr.reconcile import RECENT_LIMIT, recent_records
from sitemaster_dpr.schemas import DprRecord


def _record(record_id: str, updated_at: Optional[str] = None, status_updated_at: Optional[str] = None) -> DprRecord:
    data: dict[str, Any] = {"_id": record_id}
    if updated_at is not None:
        data["updatedAt"] = updated_at
    if status_updated_at is not None:
        data["current_status"] = {"status": "idle", "updated_at": status_updated_at}
    return DprRecord.model_validate(data)


def test_recent_records_sorts_newest_first() -> None:
    records = [
        _record("old", "2024-03-01T08:00:00Z"),
        _record("new", "2024-03-15T08:00:00Z"),
        _record("mid", "2024-03-10T08:00:00Z"),
    ]

    assert [r.id for r in recent_records(records)] == ["new", "mid", "old"]


def test_recent_records_falls_back_to_status_timestamp_and_puts_unknown_last() -> None:
    records = [
        _record("none"),
        _record("status-only", status_updated_at="2024-03-12T08:00:00Z"),
        _record("record", "2024-03-11T08:00:00Z"),
    ]

    assert [r.id for r in recent_records(records)] == ["status-only", "record", "none"]


def test_recent_records_is_limited() -> None:
    records = [_record(f"r{day}", f"2024-03-{day:02d}T08:00:00Z") for day in range(1, 11)]

    assert len(recent_records(records)) == RECENT_LIMIT == 6
    assert [r.id for r in recent_records(records, limit=2)] == ["r10", "r9"]
    assert recent_records(records, limit=0) == []
