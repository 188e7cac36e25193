"""Tests for voiceslot.elevenlabs.active_count module."""

from __future__ import annotations

import pytest

from voiceslot.elevenlabs.active_count import count_active_calls

IN_PROGRESS = frozenset({"in_progress"})


def _count(data, strategy="dispatched", statuses=IN_PROGRESS) -> int:
    return count_active_calls(data, statuses, strategy)


BATCHES = {
    "batch_calls": [
        {"id": "b1", "status": "in_progress", "total_calls_dispatched": 3},
        {"id": "b2", "status": "completed", "total_calls_dispatched": 9},
        {"id": "b3", "status": "pending", "total_calls_dispatched": 4},
    ]
}


class TestSimpleShapes:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (4, 4),
            (0, 0),
            (2.9, 2),
            (-3, 0),
            (float("nan"), 0),
        ],
    )
    def test_bare_number(self, data, expected):
        assert _count(data) == expected

    def test_bool_is_not_a_number(self):
        assert _count(True) == 0

    def test_active_count_field(self):
        assert _count({"activeCount": 6}) == 6

    def test_active_count_wins_over_other_fields(self):
        assert _count({"activeCount": 1, **BATCHES}) == 1

    def test_non_numeric_active_count_falls_through(self):
        assert _count({"activeCount": "7", "items": [{"status": "active"}]}) == 1

    @pytest.mark.parametrize("data", [None, "busy", {"other": 1}, {"items": "x"}])
    def test_unrecognised_shapes_count_zero(self, data):
        assert _count(data) == 0


class TestBatchCalls:
    """Batch-calling list with status allowlist and counting strategy."""

    def test_dispatched_strategy_sums_dispatched_calls(self):
        assert _count(BATCHES, strategy="dispatched") == 3

    def test_batches_strategy_counts_records(self):
        assert _count(BATCHES, strategy="batches") == 1

    def test_status_match_is_case_insensitive(self):
        data = {"batch_calls": [{"status": "IN_PROGRESS", "total_calls_dispatched": 2}]}
        assert _count(data) == 2

    def test_custom_allowlist(self):
        statuses = frozenset({"in_progress", "pending"})
        assert _count(BATCHES, statuses=statuses) == 7
        assert _count(BATCHES, strategy="batches", statuses=statuses) == 2

    def test_missing_or_bad_dispatch_totals_count_zero(self):
        data = {
            "batch_calls": [
                {"status": "in_progress"},
                {"status": "in_progress", "total_calls_dispatched": None},
                {"status": "in_progress", "total_calls_dispatched": "n/a"},
                {"status": "in_progress", "total_calls_dispatched": "2"},
            ]
        }
        assert _count(data) == 2

    def test_batch_calls_wins_over_items(self):
        data = {**BATCHES, "items": [{"status": "active"}] * 5}
        assert _count(data) == 3

    def test_empty_batch_list(self):
        assert _count({"batch_calls": []}) == 0


class TestCallLists:
    def test_items_counts_active_status(self):
        data = {"items": [{"status": "active"}, {"status": "done"}, {"status": "active"}]}
        assert _count(data) == 2

    def test_state_field_accepted(self):
        data = {"items": [{"state": "active"}, {"state": "ended"}]}
        assert _count(data) == 1

    def test_bare_list(self):
        assert _count([{"status": "active"}, {"state": "active"}, "junk"]) == 2
