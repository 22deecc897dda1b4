"""Tests for collision-free id allocation."""

import pytest

from backlog_cli.config import ReconciliationConfig
from backlog_cli.core.git_ops import GitCommandError
from backlog_cli.entities.models import EntityKind
from backlog_cli.entities.store import LocalEntityStore
from backlog_cli.reconcile.ids import (
    IdAllocator,
    format_id,
    format_sub_id,
    max_sub_id,
    max_top_level,
    normalize_parent_id,
)
from backlog_cli.reconcile.refs import RefEnumerator, RefTreeReader
from backlog_cli.reconcile.view import ReconciledViewBuilder
from tests.backlog_helpers import task_markdown, write_local_task


def _allocator(tmp_path, backend, **overrides):
    config = ReconciliationConfig(**overrides)
    return IdAllocator(
        config,
        LocalEntityStore(tmp_path, config.backlog_dir),
        RefEnumerator(backend, config.remote_name),
        RefTreeReader(backend),
    )


# ============================================================================
# Pure helpers
# ============================================================================


def test_max_top_level_ignores_other_kinds():
    names = ["task-4 - A.md", "task-12.03 - B.md", "doc-99 - C.md", "notes.md"]
    assert max_top_level(EntityKind.TASK, names) == 12
    assert max_top_level(EntityKind.DOC, names) == 99
    assert max_top_level(EntityKind.DECISION, names) == 0


def test_max_sub_id_matches_exact_parent_only():
    names = ["task-3.01 - A.md", "task-3.04 - B.md", "task-30.07 - C.md", "task-13.09 - D.md", "task-3 - P.md"]
    assert max_sub_id("task-3", names) == 4
    assert max_sub_id("task-30", names) == 7
    assert max_sub_id("task-5", names) == 0


def test_formatting():
    assert format_id(EntityKind.TASK, 7, None) == "task-7"
    assert format_id(EntityKind.TASK, 7, 3) == "task-007"
    assert format_id(EntityKind.DECISION, 1234, 3) == "decision-1234"
    assert format_sub_id("task-7", 3) == "task-7.03"
    assert format_sub_id("task-7", 100) == "task-7.100"


@pytest.mark.parametrize("raw", ["7", "task-7", " TASK-7 "])
def test_normalize_parent_id(raw):
    assert normalize_parent_id(raw) == "task-7"


# ============================================================================
# Allocation across branches
# ============================================================================


@pytest.mark.asyncio
async def test_next_id_exceeds_every_branch(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-1", "To Do")
    fake_backend.add_task("main", "task-2", "To Do")
    fake_backend.add_task("feature", "task-5", "Done", directory="archive/tasks")
    fake_backend.add_task("origin/release", "task-3", "Done", directory="completed", local=False)

    allocator = _allocator(tmp_path, fake_backend)

    assert await allocator.allocate_next_id(EntityKind.TASK) == "task-6"
    assert fake_backend.fetch_calls == ["origin"]


@pytest.mark.asyncio
async def test_next_id_is_monotonic(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-1", "To Do")
    allocator = _allocator(tmp_path, fake_backend)

    first = await allocator.allocate_next_id("task")
    write_local_task(tmp_path, first, "To Do")
    second = await allocator.allocate_next_id("task")

    assert (first, second) == ("task-2", "task-3")


@pytest.mark.asyncio
async def test_drafts_reserve_ids(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-9", "To Do", directory="drafts")
    assert await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.TASK) == "task-10"


@pytest.mark.parametrize("raw", ["7", "task-7", "TASK-007"])
def test_normalize_parent_id_applies_padding(raw):
    assert normalize_parent_id(raw, 3) == "task-007"


def test_normalize_parent_id_keeps_non_numeric_parents():
    assert normalize_parent_id("task-abc", 3) == "task-abc"


@pytest.mark.asyncio
async def test_padding_applies_to_top_level_only(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-003", "To Do")
    fake_backend.add_file("feature", "backlog/tasks/task-003.01 - Sub.md", task_markdown("task-003.01", "To Do"))
    allocator = _allocator(tmp_path, fake_backend, id_padding_width=3)

    assert await allocator.allocate_next_id(EntityKind.TASK) == "task-004"
    assert await allocator.allocate_next_id(EntityKind.TASK, parent_id="3") == "task-003.02"


@pytest.mark.asyncio
async def test_bare_parent_matches_padded_sub_ids(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-007", "To Do")
    write_local_task(tmp_path, "task-007.01", "To Do")
    allocator = _allocator(tmp_path, fake_backend, id_padding_width=3)

    assert await allocator.allocate_next_id(EntityKind.TASK, parent_id="7") == "task-007.02"
    assert await allocator.allocate_next_id(EntityKind.TASK, parent_id="task-007") == "task-007.02"


@pytest.mark.asyncio
async def test_first_sub_id(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-7", "To Do")
    assert await _allocator(tmp_path, fake_backend).allocate_next_id("task", "task-7") == "task-7.01"


@pytest.mark.asyncio
async def test_doc_and_decision_id_spaces(tmp_path, fake_backend):
    docs = tmp_path / "backlog" / "docs"
    docs.mkdir(parents=True)
    (docs / "doc-2 - Guide.md").write_text("---\nid: doc-2\n---\n", encoding="utf-8")
    write_local_task(tmp_path, "task-40", "To Do")
    fake_backend.add_file("feature", "backlog/docs/doc-4 - Api.md", "---\nid: doc-4\n---\n")
    fake_backend.add_file("feature", "backlog/decisions/decision-1 - Yaml.md", "---\nid: decision-1\n---\n")
    allocator = _allocator(tmp_path, fake_backend)

    assert await allocator.allocate_next_id(EntityKind.DOC) == "doc-5"
    assert await allocator.allocate_next_id(EntityKind.DECISION) == "decision-2"


@pytest.mark.asyncio
async def test_parent_only_allowed_for_tasks(tmp_path, fake_backend):
    with pytest.raises(ValueError, match="Only tasks"):
        await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.DOC, parent_id="doc-1")


@pytest.mark.asyncio
async def test_offline_uses_local_files_only(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-2", "To Do")
    fake_backend.add_task("feature", "task-9", "To Do")

    allocator = _allocator(tmp_path, fake_backend, remote_operations_enabled=False)

    assert await allocator.allocate_next_id(EntityKind.TASK) == "task-3"
    assert fake_backend.fetch_calls == []


@pytest.mark.asyncio
async def test_unreadable_branch_is_skipped(tmp_path, fake_backend):
    write_local_task(tmp_path, "task-1", "To Do")
    fake_backend.add_task("broken", "task-50", "To Do")
    fake_backend.broken_refs.add("broken")
    fake_backend.add_task("main", "task-4", "To Do")

    assert await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.TASK) == "task-5"


@pytest.mark.asyncio
async def test_network_failure_still_scans_known_branches(tmp_path, fake_backend):
    fake_backend.fetch_error = GitCommandError(["fetch", "origin"], 128, "ssh: connect to host: Connection timed out")
    fake_backend.add_task("feature", "task-8", "To Do")

    assert await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.TASK) == "task-9"


@pytest.mark.asyncio
async def test_failed_fetch_still_allocates_from_known_branches(tmp_path, fake_backend):
    fake_backend.fetch_error = GitCommandError(["fetch", "origin"], 128, "fatal: repository not found")
    write_local_task(tmp_path, "task-2", "To Do")
    fake_backend.add_task("feature", "task-6", "To Do")

    assert await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.TASK) == "task-7"
    assert fake_backend.fetch_calls == ["origin"]


@pytest.mark.asyncio
async def test_progress_reports_branch_count(tmp_path, fake_backend):
    fake_backend.add_task("main", "task-1", "To Do")
    fake_backend.add_task("feature", "task-2", "To Do")
    messages = []

    await _allocator(tmp_path, fake_backend).allocate_next_id(EntityKind.TASK, progress=messages.append)

    assert messages == ["Scanning 2 branches for task ids..."]


def test_sync_entry_point(tmp_path, fake_backend):
    fake_backend.add_task("main", "task-41", "To Do")
    assert _allocator(tmp_path, fake_backend).allocate_next_id_sync("task") == "task-42"


def test_real_repository_branches(backlog_repo):
    backlog_repo.write_task("task-1", "To Do")
    backlog_repo.commit("Add task-1")
    backlog_repo.checkout("feature", create=True)
    backlog_repo.write_task("task-2", "In Progress", title="Feature work")
    backlog_repo.commit("Add task-2")
    backlog_repo.checkout("main")

    allocator = ReconciledViewBuilder.for_repository(backlog_repo.root, ReconciliationConfig()).id_allocator()

    assert allocator.allocate_next_id_sync(EntityKind.TASK) == "task-3"
