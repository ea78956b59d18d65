"""Status editor session: draft, capping, optimistic feed update and submission."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, List, Optional

from .activity import new_comment_event, new_status_event
from .api_client import ApiError
from .models import (
    ActivityEvent,
    AggregatedProgress,
    CanonicalStatus,
    EditorState,
    StatusChangeSubmission,
    StatusUpdatePayload,
    SubmissionResult,
)
from .progress import cap_quantity, format_quantity, parse_quantity, quantity_text
from .status import SUBMITTABLE_STATUSES, to_wire_value

logger = logging.getLogger(__name__)

Updater = Callable[[str, StatusUpdatePayload], Any]
Clock = Callable[[], dt.datetime]


class EditorStateError(RuntimeError):
    """Raised when the editor is driven out of order."""


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class StatusEditor:
    """One status editor session for a single work item.

    Idle -> Editing -> Submitting -> Idle. The feed list is shared with the
    caller and receives the optimistic event of every commit. A failed update
    call is reported through the result and :attr:`last_error`; the optimistic
    status and feed entry are kept.
    """

    def __init__(
        self,
        *,
        record_id: str,
        project_id: str,
        activity_id: str,
        current_status: CanonicalStatus,
        progress: AggregatedProgress,
        feed: List[ActivityEvent],
        updater: Updater,
        clock: Optional[Clock] = None,
    ) -> None:
        self.record_id = record_id
        self.project_id = project_id
        self.activity_id = activity_id
        self.current_status = current_status
        self.progress = progress
        self.feed = feed
        self._updater = updater
        self._clock = clock or _utcnow
        self.state = EditorState.IDLE
        self.draft: Optional[StatusChangeSubmission] = None
        self.last_error: Optional[str] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Draft
    # ------------------------------------------------------------------
    def open(self) -> StatusChangeSubmission:
        if self._closed:
            raise EditorStateError("Editor has been closed")
        if self.state is EditorState.SUBMITTING:
            raise EditorStateError("A submission is still in flight")
        # pending and completed are derived by the backend and cannot be sent back
        if self.current_status in SUBMITTABLE_STATUSES:
            initial = self.current_status
        else:
            initial = CanonicalStatus.IN_PROGRESS
        self.draft = StatusChangeSubmission(next_status=initial)
        self.state = EditorState.EDITING
        self.last_error = None
        return self.draft

    def _require_draft(self) -> StatusChangeSubmission:
        if self.state is not EditorState.EDITING or self.draft is None:
            raise EditorStateError("Editor is not open")
        return self.draft

    def select_status(self, status: CanonicalStatus) -> None:
        draft = self._require_draft()
        if status not in SUBMITTABLE_STATUSES:
            raise ValueError(f"Status {status.value!r} cannot be selected")
        draft.next_status = status

    def set_note(self, text: str) -> None:
        self._require_draft().note = text or ""

    def set_quantity_input(self, text: str) -> str:
        """Store typed quantity, capped live against the pending quantity.

        Returns the value to show in the input field.
        """
        draft = self._require_draft()
        if not (text or "").strip():
            draft.raw_quantity_input = ""
            return ""
        proposed = parse_quantity(text)
        capped = cap_quantity(proposed, self.progress.pending_quantity)
        if capped != proposed:
            draft.raw_quantity_input = quantity_text(capped)
        else:
            # keep partial input such as "0." untouched while typing
            draft.raw_quantity_input = text.strip()
        return draft.raw_quantity_input

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def effective_quantity(self) -> float:
        draft = self._require_draft()
        return cap_quantity(parse_quantity(draft.raw_quantity_input), self.progress.pending_quantity)

    def build_payload(self) -> StatusUpdatePayload:
        draft = self._require_draft()
        quantity = self.effective_quantity() if draft.next_status is CanonicalStatus.IN_PROGRESS else 0.0
        return StatusUpdatePayload(
            project_id=self.project_id,
            activity_id=self.activity_id,
            todays_progress=quantity,
            date=self._clock(),
            remarks=draft.note.strip(),
            status=to_wire_value(draft.next_status),
        )

    def commit(self) -> Optional[SubmissionResult]:
        """Submit the draft. Returns ``None`` while a submission is in flight."""
        if self.state is EditorState.SUBMITTING:
            logger.debug("Ignoring re-entrant submit for %s", self.record_id)
            return None
        if self._closed:
            raise EditorStateError("Editor has been closed")
        draft = self._require_draft()
        payload = self.build_payload()

        status_changed = draft.next_status is not self.current_status
        if not status_changed and not payload.remarks and payload.todays_progress <= 0:
            logger.debug("Nothing to submit for %s", self.record_id)
            self._reset()
            return SubmissionResult(ok=True)

        if status_changed:
            event = new_status_event(self.current_status, draft.next_status, payload.remarks or None)
        else:
            message = payload.remarks or f"Logged {format_quantity(payload.todays_progress)}"
            event = new_comment_event(message)
        self.feed.append(event)
        self.current_status = draft.next_status
        self.state = EditorState.SUBMITTING

        result = SubmissionResult(ok=True, payload=payload, event=event)
        try:
            self._updater(self.record_id, payload)
        except ApiError as exc:
            logger.warning("Status update for %s failed: %s", self.record_id, exc)
            result.ok = False
            result.error = str(exc)
        finally:
            result.discarded = self._closed
            self._reset()

        if result.discarded:
            logger.debug("Editor for %s closed during submission, result discarded", self.record_id)
        elif not result.ok:
            self.last_error = result.error
        return result

    def close(self) -> None:
        """Leave the editor. An in-flight update keeps running but its result is ignored."""
        self._closed = True
        if self.state is not EditorState.SUBMITTING:
            self._reset()

    def _reset(self) -> None:
        self.state = EditorState.IDLE
        self.draft = None


__all__ = ["EditorStateError", "StatusEditor"]
