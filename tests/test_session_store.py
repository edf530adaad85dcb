"""
Tests for the session state reducers and SessionStore.

Run with: pytest tests/test_session_store.py -v
"""

from datetime import datetime, timezone

import pytest

from qca.models import AnalysisRecord, Severity
from qca.session_store import (
    SessionState,
    SessionStore,
    append_provisional,
    discard_provisional,
    finalize_last,
)


def _record(topic: str, uri: str = "") -> AnalysisRecord:
    return AnalysisRecord(
        topic=topic,
        title=f"Title for {topic}",
        table_of_contents=["One"],
        narrative="Body",
        illustration_uri=uri,
        suggested_next_topics=[f"After {topic}"],
    )


class TestReducers:
    """Pure transitions on SessionState."""

    def test_reducers_do_not_mutate_input(self):
        state = SessionState()
        new_state = append_provisional(state, _record("A"))
        assert state.history == ()
        assert len(new_state.history) == 1

    def test_finalize_replaces_trailing_provisional(self):
        state = append_provisional(SessionState(history=(_record("A", "data:x"),)), _record("B"))
        state = finalize_last(state, "data:image/jpeg;base64,AAA")
        assert [r.topic for r in state.history] == ["A", "B"]
        assert state.history[-1].illustration_uri == "data:image/jpeg;base64,AAA"
        assert state.provisional is None

    def test_discard_removes_only_provisional(self):
        state = append_provisional(SessionState(history=(_record("A", "data:x"),)), _record("B"))
        state = discard_provisional(state)
        assert [r.topic for r in state.history] == ["A"]

    def test_finalize_without_provisional_is_programming_error(self):
        with pytest.raises(AssertionError):
            finalize_last(SessionState(), "data:x")

    def test_discard_without_provisional_is_programming_error(self):
        with pytest.raises(AssertionError):
            discard_provisional(SessionState(history=(_record("A", "data:x"),)))

    def test_second_provisional_is_rejected(self):
        state = append_provisional(SessionState(), _record("A"))
        with pytest.raises(AssertionError):
            append_provisional(state, _record("B"))

    def test_finalize_requires_illustration(self):
        state = append_provisional(SessionState(), _record("A"))
        with pytest.raises(AssertionError):
            finalize_last(state, "")


class TestSessionStore:
    """Store ownership, derived views, and the activity log."""

    def test_starts_idle_and_empty(self):
        store = SessionStore()
        assert store.history == ()
        assert store.logs == ()
        assert store.status.is_busy is False
        assert store.status.stage_label == ""
        assert store.status.last_error is None
        assert store.started is False

    def test_log_timestamps_strictly_increase_with_frozen_clock(self):
        frozen = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        store = SessionStore(clock=lambda: frozen)
        store.append_log("one")
        store.append_log("two", Severity.SUCCESS)
        store.append_log("three", Severity.ERROR)
        stamps = [entry.timestamp for entry in store.logs]
        assert stamps == sorted(set(stamps))
        assert len(stamps) == 3
        assert [entry.severity for entry in store.logs] == [Severity.INFO, Severity.SUCCESS, Severity.ERROR]

    def test_previous_topics_skip_provisional(self):
        store = SessionStore()
        store.append_provisional(_record("A"))
        store.finalize_last("data:x")
        store.append_provisional(_record("B"))
        assert store.previous_topics() == ["A"]

    def test_suggested_topics_come_from_latest_finalized(self):
        store = SessionStore()
        assert store.suggested_topics() == []
        store.append_provisional(_record("A"))
        store.finalize_last("data:x")
        store.append_provisional(_record("B"))
        assert store.suggested_topics() == ["After A"]

    def test_request_lifecycle_keeps_last_error(self):
        store = SessionStore()
        store.begin_request("Working...")
        assert store.status.is_busy is True
        store.fail_request("boom")
        store.end_request()
        assert store.status.is_busy is False
        assert store.status.stage_label == ""
        assert store.status.last_error == "boom"
        store.begin_request("Again...")
        assert store.status.last_error is None
