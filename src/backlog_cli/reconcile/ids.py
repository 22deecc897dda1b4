"""Collision-free id allocation across unmerged branches.

Branches can mint ids independently, so there is no single counter. The
allocator unions every source it can see (working tree plus each branch's
tree) and returns one past the highest numeric suffix.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import PurePosixPath
from typing import Callable, Iterable

from backlog_cli.config import ReconciliationConfig
from backlog_cli.entities.models import EntityKind
from backlog_cli.entities.store import LocalEntityStore
from backlog_cli.errors import FetchError, NetworkUnavailable
from backlog_cli.reconcile.gather import gather_tolerant, skips, successes
from backlog_cli.reconcile.refs import RefEnumerator, RefTreeReader

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

# Sub-ids are zero padded to this width regardless of ``id_padding_width``.
SUB_ID_WIDTH = 2


def _noop(_message: str) -> None:
    return None


def normalize_parent_id(parent_id: str, padding_width: int | None = None) -> str:
    """``"7"`` and ``"task-7"`` both become ``"task-7"``.

    With ``padding_width`` a numeric parent is padded like a top-level id, so
    ``"7"`` becomes ``"task-007"`` for a width of 3.
    """
    parent = parent_id.strip().lower()
    prefix = EntityKind.TASK.prefix
    if parent.startswith(prefix):
        parent = parent[len(prefix):]
    if parent.isdigit():
        return format_id(EntityKind.TASK, int(parent), padding_width)
    return f"{prefix}{parent}"


def max_top_level(kind: EntityKind, candidates: Iterable[str]) -> int:
    """Largest ``N`` among candidates containing ``<kind>-<N>``."""
    highest = 0
    pattern = kind.id_pattern
    for candidate in candidates:
        match = pattern.search(candidate)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def max_sub_id(parent: str, candidates: Iterable[str]) -> int:
    """Largest ``N`` among candidates containing ``<parent>.<N>``."""
    highest = 0
    pattern = re.compile(rf"(?<![\w.]){re.escape(parent)}\.(\d+)")
    for candidate in candidates:
        match = pattern.search(candidate)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def format_id(kind: EntityKind, number: int, padding_width: int | None) -> str:
    if padding_width and padding_width > 0:
        return f"{kind.prefix}{number:0{padding_width}d}"
    return f"{kind.prefix}{number}"


def format_sub_id(parent: str, number: int) -> str:
    return f"{parent}.{number:0{SUB_ID_WIDTH}d}"


class IdAllocator:
    """Computes the next free id for an entity kind, optionally below a parent task."""

    def __init__(
        self,
        config: ReconciliationConfig,
        store: LocalEntityStore,
        enumerator: RefEnumerator,
        reader: RefTreeReader,
    ) -> None:
        self.config = config
        self.store = store
        self.enumerator = enumerator
        self.reader = reader

    async def _branch_candidates(self, branch: str, kind: EntityKind) -> list[str]:
        names: list[str] = []
        for directory in kind.directories:
            prefix = f"{self.config.backlog_dir}/{directory}"
            for path in await self.reader.list_files(branch, prefix, strict=True):
                names.append(PurePosixPath(path).name)
        return names

    async def collect_candidates(self, kind: EntityKind, progress: ProgressCallback = _noop) -> list[str]:
        """File names and ids that may carry an id of ``kind``, from every source."""
        candidates = list(await asyncio.to_thread(self.store.list_local_ids, kind))

        if not self.config.remote_operations_enabled:
            logger.debug("Remote operations disabled - allocating %s ids from local files only", kind.value)
            return candidates

        try:
            await self.enumerator.fetch()
        except (NetworkUnavailable, FetchError) as exc:
            logger.debug("%s; using branches already known locally", exc)

        branches = await asyncio.to_thread(self.enumerator.sorted_branches, True)
        progress(f"Scanning {len(branches)} branches for {kind.value} ids...")
        results = await gather_tolerant(
            (branch, self._branch_candidates(branch, kind)) for branch in branches
        )
        for skipped in skips(results):
            logger.debug("Branch %s contributed no ids: %s", skipped.label, skipped.reason)
        for result in successes(results):
            candidates.extend(result.value)
        return candidates

    async def allocate_next_id(
        self,
        kind: EntityKind | str,
        parent_id: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> str:
        """Return the next id of ``kind`` (or the next sub-id of ``parent_id``).

        Top-level ids honour ``id_padding_width``; sub-ids always use two digits.
        """
        kind = EntityKind(kind)
        progress = progress or _noop
        if parent_id is not None and kind is not EntityKind.TASK:
            raise ValueError("Only tasks can have sub-ids")

        candidates = await self.collect_candidates(kind, progress)

        if parent_id is not None:
            parent = normalize_parent_id(parent_id, self.config.id_padding_width)
            return format_sub_id(parent, max_sub_id(parent, candidates) + 1)
        return format_id(kind, max_top_level(kind, candidates) + 1, self.config.id_padding_width)

    def allocate_next_id_sync(
        self,
        kind: EntityKind | str,
        parent_id: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> str:
        return asyncio.run(self.allocate_next_id(kind, parent_id, progress))


__all__ = [
    "IdAllocator",
    "ProgressCallback",
    "SUB_ID_WIDTH",
    "format_id",
    "format_sub_id",
    "max_sub_id",
    "max_top_level",
    "normalize_parent_id",
]
