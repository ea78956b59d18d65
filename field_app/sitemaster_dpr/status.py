"""Backend status vocabulary <-> canonical status mapping."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, TypeVar

from .models import CanonicalStatus

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s_\-]+")

STATUS_SYNONYMS: dict[str, CanonicalStatus] = {
    "pending": CanonicalStatus.PENDING,
    "idle": CanonicalStatus.IDLE,
    # misspelling still sent by older backend builds
    "ideal": CanonicalStatus.IDLE,
    "work stopped": CanonicalStatus.WORK_STOPPED,
    "workstopped": CanonicalStatus.WORK_STOPPED,
    "stopped": CanonicalStatus.WORK_STOPPED,
    "completed": CanonicalStatus.COMPLETED,
    "complete": CanonicalStatus.COMPLETED,
    "in progress": CanonicalStatus.IN_PROGRESS,
    "inprogress": CanonicalStatus.IN_PROGRESS,
}

DEFAULT_EMPTY_STATUS = CanonicalStatus.IDLE
DEFAULT_UNKNOWN_STATUS = CanonicalStatus.IN_PROGRESS

SUBMITTABLE_STATUSES = (
    CanonicalStatus.IN_PROGRESS,
    CanonicalStatus.IDLE,
    CanonicalStatus.WORK_STOPPED,
)

_WIRE_VALUES: dict[CanonicalStatus, str] = {
    CanonicalStatus.IN_PROGRESS: "in progress",
    CanonicalStatus.IDLE: "idle",
    CanonicalStatus.WORK_STOPPED: "work stopped",
}

T = TypeVar("T")


def _canonical_key(raw: str) -> str:
    return _SEPARATORS.sub(" ", raw.strip().lower()).strip()


def normalize_status(raw: Optional[str]) -> CanonicalStatus:
    """Map any backend status string to a :class:`CanonicalStatus`.

    Empty input means the item has not been touched yet and maps to idle.
    Unrecognized values fall back to in progress.
    """
    if raw is None:
        return DEFAULT_EMPTY_STATUS
    key = _canonical_key(str(raw))
    if not key:
        return DEFAULT_EMPTY_STATUS
    status = STATUS_SYNONYMS.get(key)
    if status is None:
        logger.debug("Unknown status %r, falling back to %s", raw, DEFAULT_UNKNOWN_STATUS.value)
        return DEFAULT_UNKNOWN_STATUS
    return status


def lookup_status(raw: str) -> Optional[CanonicalStatus]:
    """Strict lookup for user-typed statuses; unknown spellings return ``None``."""
    return STATUS_SYNONYMS.get(_canonical_key(raw or ""))


def to_wire_value(status: CanonicalStatus) -> str:
    """Return the token the update endpoint expects for ``status``."""
    try:
        return _WIRE_VALUES[status]
    except KeyError:
        raise ValueError(f"Status {status.value!r} cannot be submitted") from None


def status_label(status: CanonicalStatus) -> str:
    return status.value.upper()


def filter_by_status(records: Iterable[T], key: str, *, attribute: str = "raw_status") -> List[T]:
    """Keep the records whose normalized status matches ``key``.

    ``key`` may be ``"all"`` or any known status spelling; anything else
    raises ``ValueError``. ``attribute`` names the raw status attribute on
    each record.
    """
    items = list(records)
    if _canonical_key(key) == "all":
        return items
    wanted = lookup_status(key)
    if wanted is None:
        raise ValueError(f"Unknown status filter {key!r}")
    return [item for item in items if normalize_status(getattr(item, attribute, None)) is wanted]


__all__ = [
    "STATUS_SYNONYMS",
    "SUBMITTABLE_STATUSES",
    "filter_by_status",
    "lookup_status",
    "normalize_status",
    "status_label",
    "to_wire_value",
]
