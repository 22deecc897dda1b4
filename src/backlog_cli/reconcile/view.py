"""Building the reconciled, read-only view of entities across branches."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Collection

from backlog_cli.config import ReconciliationConfig
from backlog_cli.core.git_ops import GitBackend
from backlog_cli.entities.models import ALL_CATEGORIES, Category, EntityRecord, MergedEntity
from backlog_cli.entities.store import LocalEntityStore
from backlog_cli.errors import LocalStoreError, NetworkUnavailable
from backlog_cli.reconcile.conflicts import merge_records
from backlog_cli.reconcile.ids import IdAllocator, ProgressCallback
from backlog_cli.reconcile.locations import dedupe_observations, resolve_locations
from backlog_cli.reconcile.refs import RefEnumerator, RefTreeReader
from backlog_cli.reconcile.snapshots import EntitySnapshotCollector

logger = logging.getLogger(__name__)


def _noop(_message: str) -> None:
    return None


class ReconciledViewBuilder:
    """Merges the working tree with every branch into one view per category.

    Example:
        >>> builder = ReconciledViewBuilder.for_repository(repo_root, config)
        >>> for entity in builder.reconcile_sync(Category.ACTIVE):
        ...     print(entity.id, entity.status)
    """

    def __init__(
        self,
        config: ReconciliationConfig,
        store: LocalEntityStore,
        enumerator: RefEnumerator,
        reader: RefTreeReader,
        collector: EntitySnapshotCollector | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.enumerator = enumerator
        self.reader = reader
        self.collector = collector or EntitySnapshotCollector(reader, config.backlog_dir)

    @classmethod
    def for_repository(cls, repo_root: Path, config: ReconciliationConfig) -> "ReconciledViewBuilder":
        """Wire a builder to the git repository at ``repo_root``."""
        backend = GitBackend(repo_root, remote_operations=config.remote_operations_enabled)
        return cls(
            config=config,
            store=LocalEntityStore(repo_root, config.backlog_dir, backend),
            enumerator=RefEnumerator(backend, config.remote_name),
            reader=RefTreeReader(backend),
        )

    def id_allocator(self) -> IdAllocator:
        """An :class:`IdAllocator` sharing this builder's collaborators."""
        return IdAllocator(self.config, self.store, self.enumerator, self.reader)

    async def _branches(self, progress: ProgressCallback) -> list[str]:
        """Sorted branches to scan; empty when remote operations are off or git is absent."""
        if not self.config.remote_operations_enabled:
            progress("Remote operations disabled - using local entities only")
            return []
        if not await asyncio.to_thread(self.enumerator.backend.is_repo):
            logger.debug("%s is not a git repository; using local entities only", self.store.repo_root)
            return []
        try:
            await self.enumerator.fetch()
        except NetworkUnavailable as exc:
            logger.debug("%s; continuing with refs already known locally", exc)
        return await asyncio.to_thread(self.enumerator.sorted_branches, True)

    async def _local_records(self, category: Category) -> list[EntityRecord]:
        try:
            return await asyncio.to_thread(self.store.list_local_entities, category)
        except LocalStoreError:
            raise
        except OSError as exc:
            raise LocalStoreError(f"Cannot read local {category.value} entities: {exc}") from exc

    async def reconcile(
        self,
        desired_category: Category | str,
        ids_of_interest: Collection[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[MergedEntity]:
        """Entities whose latest location is ``desired_category``, merged across branches.

        Raises:
            LocalStoreError: The working-tree entity store cannot be read
        """
        desired = Category(desired_category)
        progress = progress or _noop
        interest = None if ids_of_interest is None else frozenset(ids_of_interest)

        progress(f"[1/6] Loading local {desired.value} entities...")
        local_records = await self._local_records(desired)
        if interest is not None:
            local_records = [r for r in local_records if r.id in interest]
        local_observations = await asyncio.to_thread(self.store.local_observations, ALL_CATEGORIES)

        progress("[2/6] Loading entities from other branches...")
        branches = await self._branches(progress)
        snapshot = await self.collector.collect(
            branches,
            ALL_CATEGORIES,
            interest,
            record_categories={desired},
        )
        if branches:
            progress(f"Loaded {len(snapshot.full_records)} records from {len(branches)} branches")

        progress("[3/6] Merging entities...")
        merged = merge_records(
            local_records + [r for r in snapshot.full_records if r.category is desired],
            self.config.status_order,
            self.config.resolution_strategy,
        )

        progress("[4/6] Resolving entity states across branches...")
        observations = dedupe_observations(local_observations + snapshot.observations)
        locations = resolve_locations((entity.id for entity in merged), observations)

        progress(f"[5/6] Filtering {desired.value} entities...")
        visible = [
            entity for entity in merged
            if locations.get(entity.id, entity.category) is desired
        ]

        progress(f"[6/6] {len(visible)} {desired.value} entities")
        return visible

    async def resolve_locations(
        self,
        ids: Collection[str],
        progress: ProgressCallback | None = None,
    ) -> dict[str, Category]:
        """Latest known category of each id, using observations only."""
        progress = progress or _noop
        progress("Checking entity locations across branches...")
        local_observations = await asyncio.to_thread(self.store.local_observations, ALL_CATEGORIES)
        branches = await self._branches(progress)
        snapshot = await self.collector.collect(branches, ALL_CATEGORIES, observations_only=True)
        observations = dedupe_observations(local_observations + snapshot.observations)
        return resolve_locations(ids, observations)

    def reconcile_sync(
        self,
        desired_category: Category | str,
        ids_of_interest: Collection[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[MergedEntity]:
        return asyncio.run(self.reconcile(desired_category, ids_of_interest, progress))

    def resolve_locations_sync(
        self,
        ids: Collection[str],
        progress: ProgressCallback | None = None,
    ) -> dict[str, Category]:
        return asyncio.run(self.resolve_locations(ids, progress))


__all__ = ["ReconciledViewBuilder"]
