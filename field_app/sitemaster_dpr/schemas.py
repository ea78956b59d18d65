"""Validation of the loosely typed DPR payloads returned by the backend."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator, model_validator

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[dt.datetime]:
    """Parse an ISO-8601 timestamp; unusable values become ``None``."""
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        return None


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProgressEntry(_Payload):
    """One item of ``status_history``. Read-only on the client."""

    id: Optional[str] = Field(default=None, alias="_id")
    quantity: Optional[float] = Field(default=None, alias="todays_progress")
    date: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = Field(default=None, alias="createdAt")
    status_at_entry: Optional[str] = Field(default=None, alias="status")
    remarks: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("date", "created_at", mode="before")
    @classmethod
    def _timestamps(cls, value: Any) -> Optional[dt.datetime]:
        return parse_timestamp(value)

    @field_validator("id", "status_at_entry", "remarks", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @property
    def timestamp(self) -> Optional[dt.datetime]:
        return self.date or self.created_at


class CurrentStatus(_Payload):
    status: Optional[str] = None
    remarks: Optional[str] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("status", "remarks", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("updated_at", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Optional[dt.datetime]:
        return parse_timestamp(value)


class WorkCompletion(_Payload):
    unit: Optional[str] = None
    value: Optional[float] = None

    @field_validator("value", mode="before")
    @classmethod
    def _value(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("unit", mode="before")
    @classmethod
    def _unit(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)


class NamedRef(_Payload):
    """Populated reference such as ``activity_id`` or ``project_id``.

    The backend sends either the populated object or just the id string.
    """

    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    code: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_id(cls, value: Any) -> Any:
        if isinstance(value, (str, int)):
            return {"_id": str(value)}
        return value

    @field_validator("id", "name", "code", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.id


class CreationInfo(_Payload):
    timestamp: Optional[dt.datetime] = None
    actor_name: Optional[str] = None


class DprRecord(_Payload):
    """A work item (activity within a project) as returned by ``dpr/dpr``."""

    id: str = Field(default="", alias="_id")
    category: Optional[str] = None
    activity_id: Optional[NamedRef] = None
    project_id: Optional[NamedRef] = None
    percent_complete: Optional[float] = None
    work_completion: Optional[WorkCompletion] = None
    status_history: List[ProgressEntry] = Field(default_factory=list)
    current_status: Optional[CurrentStatus] = None
    planned_start: Optional[dt.datetime] = None
    planned_finish: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[dt.datetime] = Field(default=None, alias="updatedAt")
    created_by: Optional[NamedRef] = Field(default=None, alias="createdBy")
    comments: List[Any] = Field(default_factory=list)
    attachments: List[Any] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str:
        return _coerce_text(value) or ""

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("percent_complete", mode="before")
    @classmethod
    def _percent(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("planned_start", "planned_finish", "created_at", "updated_at", mode="before")
    @classmethod
    def _timestamps(cls, value: Any) -> Optional[dt.datetime]:
        return parse_timestamp(value)

    @field_validator("status_history", mode="before")
    @classmethod
    def _history(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("work_completion", "current_status", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("activity_id", "project_id", "created_by", mode="before")
    @classmethod
    def _refs(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, str, int)) and not isinstance(value, bool) else None

    @field_validator("comments", "attachments", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @property
    def raw_status(self) -> Optional[str]:
        return self.current_status.status if self.current_status else None

    @property
    def creation(self) -> CreationInfo:
        actor = self.created_by.name if self.created_by else None
        return CreationInfo(timestamp=self.created_at, actor_name=actor)

    @property
    def activity_name(self) -> Optional[str]:
        return self.activity_id.display_name if self.activity_id else None

    @property
    def project_code(self) -> Optional[str]:
        return self.project_id.code if self.project_id else None

    @property
    def last_updated(self) -> Optional[dt.datetime]:
        if self.updated_at is not None:
            return self.updated_at
        return self.current_status.updated_at if self.current_status else None


class TaskBuckets(_Payload):
    """Task counts per bucket from ``dpr/dpr-status``."""

    today: int = 0
    overdue: int = 0
    upcoming: int = 0
    completed: int = 0

    @field_validator("today", "overdue", "upcoming", "completed", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        number = _coerce_number(value)
        return int(number) if number is not None and number > 0 else 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.today + self.overdue + self.upcoming + self.completed


def unwrap_records(payload: Any) -> List[DprRecord]:
    """Validate a list response.

    Accepts ``{"data": [...]}``, a bare list or ``{"items": [...]}``. Records
    that cannot be validated are skipped.
    """
    items: list[Any]
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        items = payload["data"]
    elif isinstance(payload, dict) and isinstance(payload.get("items"), list):
        items = payload["items"]
    else:
        return []

    records: list[DprRecord] = []
    for item in items:
        try:
            records.append(DprRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed DPR record: %s", exc.errors(include_url=False))
    return records


def unwrap_buckets(payload: Any) -> TaskBuckets:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        data = payload if isinstance(payload, dict) else {}
    return TaskBuckets.model_validate(data)


__all__ = [
    "CreationInfo",
    "CurrentStatus",
    "DprRecord",
    "NamedRef",
    "ProgressEntry",
    "TaskBuckets",
    "WorkCompletion",
    "parse_timestamp",
    "unwrap_buckets",
    "unwrap_records",
]
