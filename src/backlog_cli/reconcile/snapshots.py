"""Per-branch snapshots of entity files.

One unit of work per (branch, category) pair. Every file yields a cheap
:class:`LocationObservation` (id from the file name, timestamp from history);
files of interest are additionally read and parsed into full records.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Collection, Iterable

from backlog_cli.entities.frontmatter import id_from_filename, parse_entity_header
from backlog_cli.entities.models import Category, EntityRecord, LocationObservation
from backlog_cli.errors import ParseError
from backlog_cli.reconcile.gather import BranchSkip, gather_tolerant, skips, successes
from backlog_cli.reconcile.refs import RefTreeReader

logger = logging.getLogger(__name__)


@dataclass
class BranchSnapshot:
    """What one (branch, category) pair contributed."""

    records: list[EntityRecord] = field(default_factory=list)
    observations: list[LocationObservation] = field(default_factory=list)


@dataclass
class Snapshot:
    """Joined output of every unit, sorted for deterministic folding."""

    full_records: list[EntityRecord] = field(default_factory=list)
    observations: list[LocationObservation] = field(default_factory=list)
    skipped: list[BranchSkip] = field(default_factory=list)


def _record_key(record: EntityRecord) -> tuple[str, str, str]:
    return (record.id, record.branch, record.category.value)


def _observation_key(observation: LocationObservation) -> tuple[str, str, str]:
    return (observation.id, observation.branch, observation.category.value)


class EntitySnapshotCollector:
    """Scans category directories on many branches concurrently."""

    def __init__(self, reader: RefTreeReader, backlog_dir: str = "backlog") -> None:
        self.reader = reader
        self.backlog_dir = backlog_dir

    async def _parse_record(
        self,
        branch: str,
        category: Category,
        path: str,
        observation: LocationObservation,
    ) -> EntityRecord | None:
        content = await self.reader.read_file(branch, path)
        try:
            fields = parse_entity_header(content, source=f"{branch}:{path}")
        except ParseError as exc:
            logger.debug("Skipping malformed file: %s", exc)
            return None
        return EntityRecord(
            id=fields["id"],
            category=category,
            status=fields["status"],
            fields=fields,
            branch=branch,
            observed_at=observation.observed_at,
        )

    async def _scan(
        self,
        branch: str,
        category: Category,
        ids_of_interest: Collection[str] | None,
        with_records: bool,
    ) -> BranchSnapshot:
        prefix = f"{self.backlog_dir}/{category.directory}"
        paths = [p for p in await self.reader.list_files(branch, prefix, strict=True) if p.endswith(".md")]
        # Only direct children are entities, matching the working-tree store.
        paths = [p for p in paths if p.rsplit("/", 1)[0] == prefix]

        located: list[tuple[str, str]] = []
        for path in paths:
            entity_id = id_from_filename(path)
            if entity_id is None:
                logger.debug("Ignoring %s:%s: no id in file name", branch, path)
                continue
            located.append((entity_id, path))

        stamps = await asyncio.gather(*(self.reader.last_modified(branch, path) for _, path in located))
        snapshot = BranchSnapshot()
        wanted: list[tuple[str, LocationObservation]] = []
        for (entity_id, path), stamp in zip(located, stamps):
            observation = LocationObservation(entity_id, branch, category, stamp)
            snapshot.observations.append(observation)
            if with_records and (ids_of_interest is None or entity_id in ids_of_interest):
                wanted.append((path, observation))

        parsed = await asyncio.gather(
            *(self._parse_record(branch, category, path, observation) for path, observation in wanted)
        )
        snapshot.records.extend(record for record in parsed if record is not None)
        return snapshot

    async def collect(
        self,
        branches: Iterable[str],
        categories: Iterable[Category],
        ids_of_interest: Collection[str] | None = None,
        *,
        record_categories: Collection[Category] | None = None,
        observations_only: bool = False,
    ) -> Snapshot:
        """Collect observations (and full records) for every branch x category pair.

        Args:
            branches: Branches to scan, already in fold order
            categories: Categories whose directories are listed
            ids_of_interest: Ids to fully parse; ``None`` parses every file
            record_categories: Restrict full records to these categories
            observations_only: Skip full parsing entirely

        Returns:
            :class:`Snapshot` with sorted records, observations and skipped units
        """
        categories = list(categories)
        interest = None if ids_of_interest is None else frozenset(ids_of_interest)
        units = []
        for branch in branches:
            for category in categories:
                with_records = not observations_only and (
                    record_categories is None or category in record_categories
                )
                units.append(
                    (f"{branch}:{category.directory}", self._scan(branch, category, interest, with_records))
                )

        results = await gather_tolerant(units)
        snapshot = Snapshot(skipped=skips(results))
        for result in successes(results):
            snapshot.full_records.extend(result.value.records)
            snapshot.observations.extend(result.value.observations)
        snapshot.full_records.sort(key=_record_key)
        snapshot.observations.sort(key=_observation_key)
        return snapshot


__all__ = ["BranchSnapshot", "EntitySnapshotCollector", "Snapshot"]
