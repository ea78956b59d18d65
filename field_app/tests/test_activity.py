from __future__ import annotations

import datetime as dt

from sitemaster_dpr.activity import (
    build_activity_feed,
    format_day,
    new_comment_event,
    time_ago,
    timestamp_label,
)
from sitemaster_dpr.models import ActivityKind, CanonicalStatus
from sitemaster_dpr.schemas import CreationInfo, ProgressEntry


def _entry(**data) -> ProgressEntry:
    return ProgressEntry.model_validate(data)


def test_empty_feed_gets_placeholder() -> None:
    feed = build_activity_feed(None, [])

    assert len(feed) == 1
    assert feed[0].kind is ActivityKind.SYSTEM
    assert feed[0].message == "No activity yet"


def test_creation_event_requires_timestamp_and_actor() -> None:
    created = dt.datetime(2024, 1, 4, 20, 20)

    with_actor = build_activity_feed(CreationInfo(timestamp=created, actor_name="Asha"), [])
    without_actor = build_activity_feed(CreationInfo(timestamp=created, actor_name=None), [])
    without_time = build_activity_feed(CreationInfo(timestamp=None, actor_name="Asha"), [])

    assert with_actor[0].kind is ActivityKind.SYSTEM
    assert with_actor[0].message == "Asha created this task"
    assert with_actor[0].timestamp_label == "Thursday, 8:20 PM"
    assert without_actor[0].message == "No activity yet"
    assert without_time[0].message == "No activity yet"


def test_history_is_replayed_oldest_first_with_carried_status() -> None:
    history = [
        _entry(date="2024-01-03T10:00:00", status="work_stopped", remarks="Rain"),
        _entry(date="2024-01-01T10:00:00", status="in progress"),
        _entry(date="2024-01-02T10:00:00", status="ideal", remarks="  "),
    ]

    feed = build_activity_feed(None, history)

    assert [event.kind for event in feed] == [ActivityKind.STATUS_CHANGE] * 3
    assert [(e.from_status, e.to_status) for e in feed] == [
        (CanonicalStatus.IDLE, CanonicalStatus.IN_PROGRESS),
        (CanonicalStatus.IN_PROGRESS, CanonicalStatus.IDLE),
        (CanonicalStatus.IDLE, CanonicalStatus.WORK_STOPPED),
    ]
    assert [event.message for event in feed] == ["Status changed", "Status changed", "Rain"]


def test_unparseable_timestamps_sort_first_and_are_kept() -> None:
    history = [
        _entry(date="2024-01-02T10:00:00", status="completed"),
        _entry(date="not a date", status="in progress", remarks="undated"),
    ]

    feed = build_activity_feed(None, history)

    assert len(feed) == 2
    assert feed[0].message == "undated"
    assert feed[0].timestamp_label == "-"
    assert feed[1].from_status is CanonicalStatus.IN_PROGRESS
    assert feed[1].to_status is CanonicalStatus.COMPLETED


def test_created_at_is_used_when_date_is_missing() -> None:
    history = [
        _entry(createdAt="2024-01-05T09:00:00", status="idle"),
        _entry(date="2024-01-04T09:00:00", status="in progress"),
    ]

    feed = build_activity_feed(None, history)

    assert [event.to_status for event in feed] == [CanonicalStatus.IN_PROGRESS, CanonicalStatus.IDLE]


def test_comments_are_appended_in_submission_order() -> None:
    creation = CreationInfo(timestamp=dt.datetime(2024, 1, 1, 8, 0), actor_name="Asha")
    history = [_entry(date="2024-01-02T10:00:00", status="in progress")]
    first = new_comment_event("Formwork ready")
    second = new_comment_event("Concrete ordered")

    feed = build_activity_feed(creation, history, [first, second])

    assert [event.kind for event in feed] == [
        ActivityKind.SYSTEM,
        ActivityKind.STATUS_CHANGE,
        ActivityKind.COMMENT,
        ActivityKind.COMMENT,
    ]
    assert feed[-2:] == [first, second]
    assert first.author == "You"
    assert first.id != second.id


def test_time_labels() -> None:
    now = dt.datetime(2024, 1, 4, 12, 0)

    assert timestamp_label(dt.datetime(2024, 1, 4, 0, 5)) == "Thursday, 12:05 AM"
    assert timestamp_label(None) == "-"
    assert format_day(dt.datetime(2024, 1, 5)) == "05 Jan"
    assert format_day(None) == "-"
    assert time_ago(dt.datetime(2024, 1, 4, 11, 59, 30), now) == "Just now"
    assert time_ago(dt.datetime(2024, 1, 4, 11, 15), now) == "45 min ago"
    assert time_ago(dt.datetime(2024, 1, 4, 9, 0), now) == "3 hr ago"
    assert time_ago(dt.datetime(2024, 1, 3, 12, 0), now) == "1 day ago"
    assert time_ago(dt.datetime(2024, 1, 1, 12, 0), now) == "3 days ago"
    assert time_ago(None, now) == ""
