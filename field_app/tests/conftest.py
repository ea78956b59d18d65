from __future__ import annotations

import datetime as dt
import json
from typing import Any, Callable, List, Optional

import pytest

from sitemaster_dpr.models import StatusUpdatePayload
from sitemaster_dpr.schemas import DprRecord


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, content_type: str = "application/json") -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = {"Content-Type": content_type}
        self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self) -> Any:
        return self._payload


class RecordingUpdater:
    """Stands in for ``ApiClient.update_status``."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.calls: List[tuple[str, StatusUpdatePayload]] = []
        self.error = error
        self.side_effect: Optional[Callable[[], Any]] = None

    def __call__(self, record_id: str, payload: StatusUpdatePayload) -> dict[str, Any]:
        self.calls.append((record_id, payload))
        if self.side_effect is not None:
            self.side_effect()
        if self.error is not None:
            raise self.error
        return {"ok": True}


@pytest.fixture()
def sample_day() -> dt.date:
    return dt.date(2024, 3, 15)


@pytest.fixture()
def fixed_now() -> dt.datetime:
    return dt.datetime(2024, 3, 15, 17, 45, tzinfo=dt.timezone.utc)


@pytest.fixture()
def raw_record() -> dict[str, Any]:
    return {
        "_id": "dpr-1",
        "category": "civil",
        "activity_id": {"_id": "act-7", "name": "Slab casting"},
        "project_id": {"_id": "prj-3", "code": "P-003"},
        "percent_complete": 60,
        "work_completion": {"unit": "percentage", "value": 55},
        "status_history": [
            {"todays_progress": 30, "date": "2024-03-15T09:30:00", "status": "in progress", "remarks": "Second pour"},
            {"todays_progress": 30, "date": "2024-01-01T10:00:00", "status": "in-progress"},
        ],
        "current_status": {"status": "in-progress", "updated_at": "2024-03-15T09:30:00Z"},
        "createdAt": "2023-12-28T08:00:00",
        "createdBy": {"_id": "u-1", "name": "Asha"},
        "comments": [],
        "attachments": [{"name": "photo.jpg"}],
    }


@pytest.fixture()
def record(raw_record: dict[str, Any]) -> DprRecord:
    return DprRecord.model_validate(raw_record)


@pytest.fixture()
def updater() -> RecordingUpdater:
    return RecordingUpdater()


@pytest.fixture()
def make_response() -> Callable[..., FakeResponse]:
    return FakeResponse
