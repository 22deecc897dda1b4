"""Entity models and local working-tree access."""

from backlog_cli.entities.models import (
    ALL_CATEGORIES,
    LOCAL_BRANCH,
    Category,
    EntityKind,
    EntityRecord,
    LocationObservation,
    MergedEntity,
    id_sort_key,
)
from backlog_cli.entities.store import LocalEntityStore

__all__ = [
    "ALL_CATEGORIES",
    "Category",
    "EntityKind",
    "EntityRecord",
    "LOCAL_BRANCH",
    "LocalEntityStore",
    "LocationObservation",
    "MergedEntity",
    "id_sort_key",
]
