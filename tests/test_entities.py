"""Tests for task records and postpone history parsing."""
import json
from datetime import date, datetime, time, timezone

import pytest

from taskstats.config import Priority, TaskKind, TaskStatus
from taskstats.models.entities import (
    InvalidRecordError,
    TaskRecord,
    parse_postpone_history,
)

from conftest import NOW


def _row(**overrides):
    row = {
        "id": 7,
        "title": "Water plants",
        "status": "pending",
        "created_at": "2026-03-01T08:00:00",
        "due_date": "2026-03-10",
        "due_time": None,
        "completed_at": None,
        "postpone_count": 0,
        "postpone_history": None,
        "task_kind": "normal",
        "is_routine_task": 0,
        "has_recurrence": 0,
        "is_special": 0,
        "category_id": None,
        "priority": "Medium",
        "not_done_reason": None,
    }
    row.update(overrides)
    return row


class TestFromDict:
    def test_parses_store_row(self):
        record = TaskRecord.from_dict(_row(due_time="09:30:00", is_special=1, priority="High"))
        assert record.status == TaskStatus.PENDING
        assert record.created_at == datetime(2026, 3, 1, 8, 0)
        assert record.due_date == date(2026, 3, 10)
        assert record.due_time == time(9, 30)
        assert record.is_special is True
        assert record.priority == Priority.HIGH
        assert record.task_kind == TaskKind.NORMAL

    def test_to_dict_matches_row_layout(self):
        row = _row(completed_at="2026-03-10T18:00:00", status="completed")
        assert TaskRecord.from_dict(row).to_dict() == row

    @pytest.mark.parametrize("field, value", [
        ("status", "archived"),
        ("task_kind", "habit"),
        ("priority", "Urgent"),
        ("created_at", "yesterday"),
    ])
    def test_rejects_unrecognized_values(self, field, value):
        with pytest.raises(InvalidRecordError):
            TaskRecord.from_dict(_row(**{field: value}))


class TestOverdue:
    def test_pending_past_due_is_overdue(self, make_record):
        assert make_record(due_date=date(2026, 3, 14)).is_overdue(NOW)

    def test_future_due_is_not_overdue(self, make_record):
        assert not make_record(due_date=date(2026, 3, 16)).is_overdue(NOW)

    def test_only_pending_can_be_overdue(self, make_record):
        record = make_record(due_date=date(2026, 3, 1), status=TaskStatus.POSTPONED)
        assert not record.is_overdue(NOW)


class TestPostponeHistory:
    def test_empty(self):
        assert parse_postpone_history(None) == []
        assert parse_postpone_history("") == []

    def test_corrupt_payload(self):
        assert parse_postpone_history("[{") == []

    def test_keeps_good_items(self):
        raw = json.dumps([
            {"postponedAt": "2026-03-02T10:00:00", "from": "2026-03-02", "to": "2026-03-03", "reason": "busy"},
            {"postponedAt": 12},
            {"from": "2026-03-01"},
        ])
        entries = parse_postpone_history(raw)
        assert len(entries) == 1
        assert entries[0].postponed_at == datetime(2026, 3, 2, 10, 0)
        assert entries[0].to_date == date(2026, 3, 3)
        assert entries[0].reason == "busy"

    def test_offset_aware_stamp_becomes_local_naive(self):
        raw = json.dumps([{"postponedAt": "2026-03-02T10:00:00Z"}])
        entries = parse_postpone_history(raw)
        expected = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert entries[0].postponed_at == expected
        assert entries[0].postponed_at.tzinfo is None

    def test_with_postpone_appends_history(self, make_record):
        record = make_record(due_date=date(2026, 3, 15))
        moved = record.with_postpone(date(2026, 3, 17), at=NOW, reason="travel")
        moved_again = moved.with_postpone(date(2026, 3, 20), at=NOW)

        assert moved_again.postpone_count == 2
        assert moved_again.status == TaskStatus.PENDING
        assert moved_again.due_date == date(2026, 3, 20)
        entries = moved_again.history_entries()
        assert [e.from_date for e in entries] == [date(2026, 3, 15), date(2026, 3, 17)]
        assert entries[0].reason == "travel"
        # Source record is untouched
        assert record.postpone_count == 0

    def test_postponed_into_the_past_is_overdue(self, make_record):
        record = make_record(due_date=date(2026, 3, 15))
        moved = record.with_postpone(date(2026, 3, 14), at=NOW)
        assert moved.is_overdue(NOW)


class TestUndoPostpone:
    def test_restores_previous_date(self, make_record):
        record = make_record(due_date=date(2026, 3, 15))
        moved = record.with_postpone(date(2026, 3, 17), at=NOW, reason="travel")
        moved = moved.with_postpone(date(2026, 3, 20), at=NOW, reason="sick")

        undone = moved.without_last_postpone()
        assert undone.due_date == date(2026, 3, 17)
        assert undone.postpone_count == 1
        assert [e.reason for e in undone.history_entries()] == ["travel"]

        first = undone.without_last_postpone()
        assert first.due_date == date(2026, 3, 15)
        assert first.postpone_count == 0
        assert first.postpone_history is None

    def test_nothing_to_undo(self, make_record):
        assert make_record().without_last_postpone() is None
        assert make_record(postpone_count=2, postpone_history="{broken").without_last_postpone() is None

    def test_entry_without_source_date(self, make_record):
        record = make_record(
            postpone_count=1,
            postpone_history=json.dumps([{"postponedAt": "2026-03-02T10:00:00"}]),
        )
        assert record.without_last_postpone() is None
