"""Choosing a canonical record when two branches disagree about an entity."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from backlog_cli.entities.models import EntityRecord, MergedEntity, id_sort_key

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _stamp(record: EntityRecord) -> datetime:
    stamp = record.observed_at
    if stamp is None:
        return _OLDEST
    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=timezone.utc)
    return stamp


def _rank(status_order: Sequence[str], status: str) -> int:
    try:
        return list(status_order).index(status)
    except ValueError:
        return -1


def resolve_conflict(
    existing: EntityRecord,
    candidate: EntityRecord,
    status_order: Sequence[str],
    strategy: str,
) -> EntityRecord:
    """Return the record that should represent the entity.

    ``most_recent`` keeps the later ``observed_at`` (``existing`` on a tie).
    ``most_progressed`` lets ``candidate`` win when its status ranks higher,
    ranks the same, or when ``existing``'s status is not in ``status_order``.
    Any other strategy behaves like ``most_progressed``.
    """
    if strategy == "most_recent":
        return candidate if _stamp(candidate) > _stamp(existing) else existing

    current = _rank(status_order, existing.status)
    proposed = _rank(status_order, candidate.status)
    if proposed > current or current == -1 or proposed == current:
        return candidate
    return existing


def fold_order(record: EntityRecord) -> tuple[int, str, str]:
    """Working tree first, then branches by name."""
    return (0 if record.is_local else 1, record.branch, record.category.value)


def merge_records(
    records: Iterable[EntityRecord],
    status_order: Sequence[str],
    strategy: str,
) -> list[MergedEntity]:
    """Fold every record per id in :func:`fold_order`; output sorted by id."""
    merged: dict[str, MergedEntity] = {}
    for record in sorted(records, key=fold_order):
        entry = merged.get(record.id)
        if entry is None:
            merged[record.id] = MergedEntity(record.id, record, [record.branch])
            continue
        entry.canonical_record = resolve_conflict(entry.canonical_record, record, status_order, strategy)
        if record.branch not in entry.considered_branches:
            entry.considered_branches.append(record.branch)
    return [merged[key] for key in sorted(merged, key=id_sort_key)]


__all__ = ["fold_order", "merge_records", "resolve_conflict"]
