"""In-memory session state and the reducers that transition it.

SessionState is immutable; every reducer returns a new state. SessionStore owns
the current state for the running process and is the only thing the
orchestrator and the HTTP layer touch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from .models import AnalysisRecord, LogEntry, SessionStatus, Severity


@dataclass(frozen=True)
class SessionState:
    """Snapshot of one session: history, activity log, status, started flag."""
    history: Tuple[AnalysisRecord, ...] = ()
    logs: Tuple[LogEntry, ...] = ()
    status: SessionStatus = field(default_factory=SessionStatus)
    started: bool = False

    @property
    def provisional(self) -> Optional[AnalysisRecord]:
        if self.history and self.history[-1].is_provisional:
            return self.history[-1]
        return None


def mark_started(state: SessionState) -> SessionState:
    return state if state.started else replace(state, started=True)


def begin_request(state: SessionState, stage_label: str) -> SessionState:
    """Enter the busy state and clear the previous error."""
    assert not state.status.is_busy, "a request is already in flight"
    return replace(state, status=SessionStatus(is_busy=True, stage_label=stage_label, last_error=None))


def set_stage_label(state: SessionState, stage_label: str) -> SessionState:
    return replace(state, status=state.status.model_copy(update={"stage_label": stage_label}))


def fail_request(state: SessionState, message: str) -> SessionState:
    return replace(state, status=state.status.model_copy(update={"last_error": message}))


def end_request(state: SessionState) -> SessionState:
    """Return to idle, keeping last_error for display."""
    return replace(state, status=SessionStatus(is_busy=False, stage_label="", last_error=state.status.last_error))


def append_provisional(state: SessionState, record: AnalysisRecord) -> SessionState:
    assert record.is_provisional, "provisional records carry no illustration"
    assert state.provisional is None, "only one provisional record may exist"
    return replace(state, history=state.history + (record,))


def finalize_last(state: SessionState, illustration_uri: str) -> SessionState:
    """Replace the trailing provisional record with its illustrated version."""
    provisional = state.provisional
    assert provisional is not None, "finalize_last requires a provisional record"
    assert illustration_uri, "a finalized record needs an illustration"
    finalized = provisional.model_copy(update={"illustration_uri": illustration_uri})
    return replace(state, history=state.history[:-1] + (finalized,))


def discard_provisional(state: SessionState) -> SessionState:
    assert state.provisional is not None, "discard_provisional requires a provisional record"
    return replace(state, history=state.history[:-1])


def append_log(state: SessionState, entry: LogEntry) -> SessionState:
    """Append a log entry, nudging its timestamp forward if the clock did not advance."""
    if state.logs and entry.timestamp <= state.logs[-1].timestamp:
        entry = entry.model_copy(update={"timestamp": state.logs[-1].timestamp + timedelta(microseconds=1)})
    return replace(state, logs=state.logs + (entry,))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Owner of the single process-wide session."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Purpose: Start an empty, idle session.
        Inputs/Outputs: Input is an optional clock used to stamp log entries.
        Side Effects / State: None beyond the in-memory state.
        If Removed: Orchestrator and API have nowhere to keep history, status, or logs.
        Testing Notes: Inject a frozen clock to check timestamp monotonicity.
        """
        self._clock = clock
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> Tuple[AnalysisRecord, ...]:
        return self._state.history

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        return self._state.logs

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def started(self) -> bool:
        return self._state.started

    def mark_started(self) -> None:
        self._state = mark_started(self._state)

    def begin_request(self, stage_label: str) -> None:
        self._state = begin_request(self._state, stage_label)

    def set_stage_label(self, stage_label: str) -> None:
        self._state = set_stage_label(self._state, stage_label)

    def fail_request(self, message: str) -> None:
        self._state = fail_request(self._state, message)

    def end_request(self) -> None:
        self._state = end_request(self._state)

    def append_provisional(self, record: AnalysisRecord) -> None:
        self._state = append_provisional(self._state, record)

    def finalize_last(self, illustration_uri: str) -> None:
        self._state = finalize_last(self._state, illustration_uri)

    def discard_provisional(self) -> None:
        self._state = discard_provisional(self._state)

    def has_provisional(self) -> bool:
        return self._state.provisional is not None

    def append_log(self, message: str, severity: Severity = Severity.INFO) -> LogEntry:
        """Stamp and append an activity log entry; returns the stored entry."""
        entry = LogEntry(timestamp=self._clock(), message=message, severity=severity)
        self._state = append_log(self._state, entry)
        return self._state.logs[-1]

    def previous_topics(self) -> List[str]:
        """Topics of finalized records, in session order."""
        return [record.topic for record in self._state.history if not record.is_provisional]

    def suggested_topics(self) -> List[str]:
        """Follow-up topics offered by the latest finalized record."""
        for record in reversed(self._state.history):
            if not record.is_provisional:
                return list(record.suggested_next_topics or [])
        return []
