"""Tests for the tolerant fan-out/gather primitive."""

import asyncio

import pytest

from backlog_cli.errors import RefAccessError
from backlog_cli.reconcile.gather import BranchOk, BranchSkip, gather_tolerant, skips, successes


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(exc):
    raise exc


@pytest.mark.asyncio
async def test_results_keep_input_order():
    results = await gather_tolerant([("slow", _value(1, 0.02)), ("fast", _value(2))])
    assert results == [BranchOk("slow", 1), BranchOk("fast", 2)]


@pytest.mark.asyncio
async def test_failures_become_skips():
    results = await gather_tolerant(
        [
            ("main", _value(["task-1"])),
            ("gone", _fail(RefAccessError("gone", "fatal: bad ref"))),
            ("disk", _fail(OSError("disk full"))),
        ]
    )

    assert [r.ok for r in results] == [True, False, False]
    assert [s.label for s in skips(results)] == ["gone", "disk"]
    assert "Cannot access branch 'gone'" in skips(results)[0].reason
    assert [r.value for r in successes(results)] == [["task-1"]]


@pytest.mark.asyncio
async def test_programming_errors_propagate():
    with pytest.raises(KeyError):
        await gather_tolerant([("main", _value(1)), ("bug", _fail(KeyError("oops")))])


@pytest.mark.asyncio
async def test_empty_input():
    assert await gather_tolerant([]) == []


def test_skip_is_not_ok():
    assert BranchSkip("x", "reason").ok is False
