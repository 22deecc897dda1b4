"""Read-only access to entity files in the local working tree."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from backlog_cli.core.git_ops import GitBackend
from backlog_cli.entities.frontmatter import id_from_filename, parse_entity_header
from backlog_cli.entities.models import (
    LOCAL_BRANCH,
    Category,
    EntityKind,
    EntityRecord,
    LocationObservation,
)
from backlog_cli.errors import LocalStoreError, ParseError

logger = logging.getLogger(__name__)


class LocalEntityStore:
    """Lists and parses entity files below ``<repo_root>/<backlog_dir>``.

    Timestamps of working-tree files come from the last commit touching the
    path on ``HEAD``; files with no history (new or moved but uncommitted) use
    their modification time instead.
    """

    def __init__(
        self,
        repo_root: Path,
        backlog_dir: str = "backlog",
        backend: GitBackend | None = None,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.backlog_dir = backlog_dir
        self.backend = backend

    @property
    def backlog_root(self) -> Path:
        return self.repo_root / self.backlog_dir

    def _entity_files(self, directory: str) -> list[Path]:
        target = self.backlog_root / directory
        if not target.exists():
            return []
        try:
            return sorted(p for p in target.iterdir() if p.is_file() and p.suffix == ".md")
        except OSError as exc:
            raise LocalStoreError(f"Cannot read local entity directory {target}: {exc}") from exc

    def observed_at(self, path: Path) -> datetime | None:
        """Timestamp of ``path`` as seen by the working tree."""
        if self.backend is not None:
            relative = path.relative_to(self.repo_root).as_posix()
            committed = self.backend.last_modified_at("HEAD", relative)
            if committed is not None:
                return committed
        try:
            return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        except OSError:
            return None

    def list_local_entities(self, category: Category) -> list[EntityRecord]:
        """Parse every entity file of ``category``; malformed files are skipped.

        Raises:
            LocalStoreError: If the category directory cannot be read
        """
        records: list[EntityRecord] = []
        for path in self._entity_files(category.directory):
            try:
                content = path.read_text(encoding="utf-8")
                fields = parse_entity_header(content, source=str(path))
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Skipping unreadable local file %s: %s", path, exc)
                continue
            except ParseError as exc:
                logger.debug("Skipping malformed local file: %s", exc)
                continue
            records.append(
                EntityRecord(
                    id=fields["id"],
                    category=category,
                    status=fields["status"],
                    fields=fields,
                    branch=LOCAL_BRANCH,
                    observed_at=self.observed_at(path),
                )
            )
        return records

    def list_local_ids(self, kind: EntityKind) -> list[str]:
        """Ids of ``kind`` present anywhere in the working tree, taken from file names."""
        ids: list[str] = []
        for directory in kind.directories:
            for path in self._entity_files(directory):
                entity_id = id_from_filename(path.name)
                if entity_id and entity_id.startswith(kind.prefix):
                    ids.append(entity_id)
        return ids

    def local_observations(self, categories: Iterable[Category]) -> list[LocationObservation]:
        """One observation per task file of each category in the working tree."""
        observations: list[LocationObservation] = []
        for category in categories:
            for path in self._entity_files(category.directory):
                entity_id = id_from_filename(path.name)
                if entity_id is None:
                    logger.debug("Ignoring %s: no id in file name", path)
                    continue
                observations.append(
                    LocationObservation(
                        id=entity_id,
                        branch=LOCAL_BRANCH,
                        category=category,
                        observed_at=self.observed_at(path),
                    )
                )
        return observations


__all__ = ["LocalEntityStore"]
