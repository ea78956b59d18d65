"""Console entry point for the field client."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from typing import Optional, Sequence

from .api_client import ApiClient, ApiError
from .activity import format_day, time_ago
from .config import AppConfig, load_config
from .progress import format_quantity, percent_label, remaining_label
from .reconcile import TaskSnapshot, editor_for, recent_records, reconcile_record
from .schemas import DprRecord
from .status import SUBMITTABLE_STATUSES, filter_by_status, lookup_status, status_label

logger = logging.getLogger(__name__)

MAX_PAGES = 50


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitemaster-dpr", description="Daily progress reporting from the field")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("summary", help="Show task counts per bucket")

    list_parser = commands.add_parser("list", help="List work items with derived progress")
    list_parser.add_argument("--status", default="all", help="all, pending, in progress, idle, work stopped, completed")
    list_parser.add_argument("--search", help="Free text search")
    list_parser.add_argument("--project", help="Project id")
    list_parser.add_argument("--page", type=int, default=1)

    recent_parser = commands.add_parser("recent", help="Show the most recently updated work items")
    recent_parser.add_argument("--limit", type=int, help="Number of items to show")
    recent_parser.add_argument("--project", help="Project id")

    update_parser = commands.add_parser("update", help="Submit a status update for a work item")
    update_parser.add_argument("record_id")
    update_parser.add_argument(
        "--status",
        required=True,
        help="one of: " + ", ".join(status.value for status in SUBMITTABLE_STATUSES),
    )
    update_parser.add_argument("--note", default="")
    update_parser.add_argument("--quantity", default="", help="Today's progress")
    return parser


def _count_label(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def format_details(record: DprRecord, now: dt.datetime) -> str:
    """Second line of a task card: project, plan, counts and last update."""
    parts = [record.project_code or "-"]
    if record.category:
        parts.append(record.category)
    if record.planned_start or record.planned_finish:
        parts.append(f"planned {format_day(record.planned_start)} - {format_day(record.planned_finish)}")
    parts.append(_count_label(len(record.comments), "comment"))
    parts.append(_count_label(len(record.attachments), "attachment"))
    updated = time_ago(record.last_updated, now)
    if updated:
        parts.append(f"updated {updated}")
    return ", ".join(parts)


def format_snapshot(snapshot: TaskSnapshot, now: Optional[dt.datetime] = None) -> str:
    record = snapshot.record
    progress = snapshot.progress
    now = now or dt.datetime.now(dt.timezone.utc)
    summary = "  ".join(
        [
            record.id or "-",
            f"{status_label(snapshot.status):<13}",
            f"{percent_label(record.percent_complete, record.work_completion):>4}",
            record.activity_name or "Activity name not available",
            f"done {format_quantity(progress.completed_quantity)}/{format_quantity(progress.total_quantity)}",
            f"today {format_quantity(progress.today_quantity)}",
            remaining_label(progress.pending_quantity),
        ]
    )
    return f"{summary}\n    {format_details(record, now)}"


def _find_record(client: ApiClient, record_id: str, limit: int) -> Optional[DprRecord]:
    for page in range(1, MAX_PAGES + 1):
        records = client.list_dpr(page=page, limit=limit)
        for record in records:
            if record.id == record_id:
                return record
        if len(records) < limit:
            break
    return None


def _run_summary(client: ApiClient) -> int:
    buckets = client.get_task_buckets()
    print(f"Today:     {buckets.today}")
    print(f"Overdue:   {buckets.overdue}")
    print(f"Upcoming:  {buckets.upcoming}")
    print(f"Completed: {buckets.completed}")
    print(f"My Tasks:  {buckets.total}")
    return 0


def _run_list(client: ApiClient, config: AppConfig, args: argparse.Namespace) -> int:
    if args.status.strip().lower() != "all" and lookup_status(args.status) is None:
        print(f"Unknown status {args.status!r}", file=sys.stderr)
        return 2
    records = client.list_dpr(page=args.page, limit=config.page_limit, search=args.search, project_id=args.project)
    today = dt.date.today()
    for record in filter_by_status(records, args.status):
        print(format_snapshot(reconcile_record(record, today)))
    return 0


def _run_recent(client: ApiClient, config: AppConfig, args: argparse.Namespace) -> int:
    limit = config.recent_limit if args.limit is None else args.limit
    if limit < 1:
        print("--limit must be at least 1", file=sys.stderr)
        return 2
    records = client.list_dpr(page=1, limit=config.page_limit, project_id=args.project)
    today = dt.date.today()
    for record in recent_records(records, limit):
        print(format_snapshot(reconcile_record(record, today)))
    return 0


def _run_update(client: ApiClient, config: AppConfig, args: argparse.Namespace) -> int:
    status = lookup_status(args.status)
    if status is None:
        print(f"Unknown status {args.status!r}", file=sys.stderr)
        return 2
    if status not in SUBMITTABLE_STATUSES:
        print(f"Status {status.value!r} cannot be submitted", file=sys.stderr)
        return 2

    record = _find_record(client, args.record_id, config.page_limit)
    if record is None:
        print(f"Work item {args.record_id} not found", file=sys.stderr)
        return 1

    snapshot = reconcile_record(record, dt.date.today())
    editor = editor_for(snapshot, client.update_status)
    editor.open()
    editor.select_status(status)
    editor.set_note(args.note)
    shown = editor.set_quantity_input(args.quantity)
    if args.quantity.strip() and shown != args.quantity.strip():
        print(f"Quantity capped to {shown} ({remaining_label(snapshot.progress.pending_quantity)})")

    result = editor.commit()
    if result is None or result.payload is None:
        print("Nothing to submit")
        return 0
    if not result.ok:
        print(f"Update failed: {result.error}", file=sys.stderr)
        return 1
    print(f"{status_label(editor.current_status)}: logged {format_quantity(result.payload.todays_progress)}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the console client."""

    args = _build_parser().parse_args(argv)
    config = load_config()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    client = ApiClient(config.api_url, token=config.api_token, timeout=config.timeout_seconds)
    try:
        if args.command == "summary":
            return _run_summary(client)
        if args.command == "list":
            return _run_list(client, config, args)
        if args.command == "recent":
            return _run_recent(client, config, args)
        return _run_update(client, config, args)
    except ApiError as exc:
        logger.debug("API call failed", exc_info=True)
        print(f"API error: {exc}", file=sys.stderr)
        return 1


__all__ = ["format_details", "format_snapshot", "main"]
