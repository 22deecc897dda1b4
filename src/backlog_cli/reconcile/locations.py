"""Resolving the lifecycle category an entity most recently moved to."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from backlog_cli.entities.models import ALL_CATEGORIES, Category, LocationObservation

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_CATEGORY_RANK = {category: index for index, category in enumerate(ALL_CATEGORIES)}


def _stamp(observation: LocationObservation) -> datetime:
    stamp = observation.observed_at
    if stamp is None:
        return _OLDEST
    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=timezone.utc)
    return stamp


def _supersedes(candidate: LocationObservation, best: LocationObservation) -> bool:
    """Later timestamp wins; ties go to the working tree, then the smaller branch name."""
    candidate_stamp, best_stamp = _stamp(candidate), _stamp(best)
    if candidate_stamp != best_stamp:
        return candidate_stamp > best_stamp
    if candidate.is_local != best.is_local:
        return candidate.is_local
    if candidate.branch != best.branch:
        return candidate.branch < best.branch
    return _CATEGORY_RANK[candidate.category] < _CATEGORY_RANK[best.category]


def dedupe_observations(observations: Iterable[LocationObservation]) -> list[LocationObservation]:
    """Keep one observation per (id, branch).

    A branch whose tree holds the same id in two directories reports only the
    more recently changed one.
    """
    kept: dict[tuple[str, str], LocationObservation] = {}
    for observation in observations:
        key = (observation.id, observation.branch)
        current = kept.get(key)
        if current is None:
            kept[key] = observation
            continue
        logger.debug(
            "%s appears in both %s and %s on %s",
            observation.id,
            current.category.value,
            observation.category.value,
            observation.branch,
        )
        if _supersedes(observation, current):
            kept[key] = observation
    return list(kept.values())


def resolve_locations(
    ids: Iterable[str],
    observations: Iterable[LocationObservation],
) -> dict[str, Category]:
    """Map each id to the category of its most recent observation.

    Ids without any observation are left out of the result.
    """
    wanted = set(ids)
    best: dict[str, LocationObservation] = {}
    for observation in observations:
        if observation.id not in wanted:
            continue
        current = best.get(observation.id)
        if current is None or _supersedes(observation, current):
            best[observation.id] = observation
    return {entity_id: observation.category for entity_id, observation in best.items()}


__all__ = ["dedupe_observations", "resolve_locations"]
