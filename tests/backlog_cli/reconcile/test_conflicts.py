"""Tests for canonical record selection."""

import pytest

from backlog_cli.entities.models import LOCAL_BRANCH, Category, EntityRecord
from backlog_cli.reconcile.conflicts import fold_order, merge_records, resolve_conflict
from tests.backlog_helpers import utc

STATUSES = ("To Do", "In Progress", "Done")


def record(status, branch=LOCAL_BRANCH, when=None, entity_id="task-1", category=Category.ACTIVE):
    return EntityRecord(entity_id, category, status, {"title": branch}, branch=branch, observed_at=when)


# ============================================================================
# most_progressed
# ============================================================================


@pytest.mark.parametrize(
    "existing, candidate, winner",
    [
        ("To Do", "Done", "candidate"),
        ("Done", "To Do", "existing"),
        ("In Progress", "In Progress", "candidate"),
        ("Blocked", "To Do", "candidate"),
        ("To Do", "Blocked", "existing"),
        ("Blocked", "Waiting", "candidate"),
    ],
)
def test_most_progressed(existing, candidate, winner):
    first = record(existing, branch="a")
    second = record(candidate, branch="b")
    expected = second if winner == "candidate" else first

    result = resolve_conflict(first, second, STATUSES, "most_progressed")

    assert result is expected


def test_unknown_strategy_behaves_like_most_progressed():
    first, second = record("Done", "a"), record("To Do", "b")
    assert resolve_conflict(first, second, STATUSES, "whatever") is first


# ============================================================================
# most_recent
# ============================================================================


def test_most_recent_prefers_later_timestamp():
    older = record("Done", "a", utc(2024, 1, 1))
    newer = record("To Do", "b", utc(2024, 2, 1))

    assert resolve_conflict(older, newer, STATUSES, "most_recent") is newer
    assert resolve_conflict(newer, older, STATUSES, "most_recent") is newer


def test_most_recent_tie_keeps_existing():
    first = record("To Do", "a", utc(2024, 1, 1))
    second = record("Done", "b", utc(2024, 1, 1))
    assert resolve_conflict(first, second, STATUSES, "most_recent") is first


def test_most_recent_missing_timestamp_is_oldest():
    undated = record("Done", "a")
    dated = record("To Do", "b", utc(2020, 1, 1))
    assert resolve_conflict(undated, dated, STATUSES, "most_recent") is dated
    assert resolve_conflict(dated, undated, STATUSES, "most_recent") is dated


# ============================================================================
# merge_records
# ============================================================================


def test_fold_order_puts_working_tree_first():
    records = [record("To Do", "main"), record("To Do", "feature"), record("To Do")]
    assert [r.branch for r in sorted(records, key=fold_order)] == [LOCAL_BRANCH, "feature", "main"]


def test_merge_records_picks_most_progressed_regardless_of_input_order():
    records = [
        record("To Do", "main"),
        record("Done", "feature"),
        record("In Progress"),
    ]

    (merged,) = merge_records(records, STATUSES, "most_progressed")
    (reversed_merge,) = merge_records(list(reversed(records)), STATUSES, "most_progressed")

    assert merged.status == "Done"
    assert merged.canonical_record.branch == "feature"
    assert merged.considered_branches == [LOCAL_BRANCH, "feature", "main"]
    assert merged == reversed_merge


def test_equal_rank_tie_goes_to_last_folded_branch():
    records = [record("Done", "main"), record("Done", "feature"), record("Done")]
    (merged,) = merge_records(records, STATUSES, "most_progressed")
    assert merged.canonical_record.branch == "main"


def test_merge_records_sorted_numerically_by_id():
    records = [
        record("To Do", entity_id="task-10"),
        record("To Do", entity_id="task-2"),
        record("To Do", entity_id="task-2.01"),
    ]
    assert [m.id for m in merge_records(records, STATUSES, "most_progressed")] == ["task-2", "task-2.01", "task-10"]


def test_merge_records_empty():
    assert merge_records([], STATUSES, "most_recent") == []
