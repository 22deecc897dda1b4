"""Entity records, observations and lifecycle categories."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Branch label used for the caller's working tree.
LOCAL_BRANCH = "(local)"


class Category(str, Enum):
    """Lifecycle bucket an entity occupies, encoded by its directory."""

    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"
    COMPLETED = "completed"

    @property
    def directory(self) -> str:
        """Directory of this category relative to the backlog root."""
        return CATEGORY_DIRECTORIES[self]


CATEGORY_DIRECTORIES: dict[Category, str] = {
    Category.ACTIVE: "tasks",
    Category.DRAFT: "drafts",
    Category.ARCHIVED: "archive/tasks",
    Category.COMPLETED: "completed",
}

ALL_CATEGORIES: tuple[Category, ...] = tuple(Category)


class EntityKind(str, Enum):
    """Id-space an entity belongs to."""

    TASK = "task"
    DOC = "doc"
    DECISION = "decision"

    @property
    def prefix(self) -> str:
        return f"{self.value}-"

    @property
    def directories(self) -> tuple[str, ...]:
        """Directories (relative to the backlog root) holding this kind's files."""
        if self is EntityKind.TASK:
            return tuple(CATEGORY_DIRECTORIES[c] for c in ALL_CATEGORIES)
        if self is EntityKind.DOC:
            return ("docs",)
        return ("decisions",)

    @property
    def id_pattern(self) -> re.Pattern[str]:
        """Pattern finding a top-level id of this kind in a file name."""
        return re.compile(rf"{self.value}-(\d+)")


def category_for_directory(directory: str) -> Category | None:
    """Map a backlog-relative directory back to its category."""
    normalized = directory.strip("/")
    for category, category_dir in CATEGORY_DIRECTORIES.items():
        if normalized == category_dir:
            return category
    return None


_ID_NUMBER = re.compile(r"(\d+(?:\.\d+)*)$")


def id_sort_key(entity_id: str) -> tuple[str, tuple[int, ...]]:
    """Sort key ordering ``task-2`` before ``task-10`` and ``task-1.2`` after ``task-1``."""
    match = _ID_NUMBER.search(entity_id)
    if not match:
        return (entity_id, ())
    prefix = entity_id[: match.start()]
    return (prefix, tuple(int(part) for part in match.group(1).split(".")))


@dataclass(frozen=True)
class EntityRecord:
    """One branch's view of one entity.

    ``fields`` holds the parsed front matter plus ``body``; ``branch`` is
    :data:`LOCAL_BRANCH` for the working tree.
    """

    id: str
    category: Category
    status: str
    fields: dict[str, Any] = field(default_factory=dict, compare=False)
    branch: str = LOCAL_BRANCH
    observed_at: datetime | None = None

    @property
    def is_local(self) -> bool:
        return self.branch == LOCAL_BRANCH

    def to_dict(self) -> dict[str, object]:
        """Serialize to JSON-compatible dict."""
        return {
            "id": self.id,
            "category": self.category.value,
            "status": self.status,
            "branch": self.branch,
            "observed_at": self.observed_at.isoformat() if self.observed_at else None,
            "fields": {k: v for k, v in self.fields.items() if k != "body"},
        }


@dataclass(frozen=True)
class LocationObservation:
    """A branch's report of where an entity lives and when that was last changed."""

    id: str
    branch: str
    category: Category
    observed_at: datetime | None = None

    @property
    def is_local(self) -> bool:
        return self.branch == LOCAL_BRANCH


@dataclass
class MergedEntity:
    """Canonical record for one id after folding every branch's view."""

    id: str
    canonical_record: EntityRecord
    considered_branches: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return self.canonical_record.status

    @property
    def category(self) -> Category:
        return self.canonical_record.category

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "considered_branches": list(self.considered_branches),
            "canonical_record": self.canonical_record.to_dict(),
        }


__all__ = [
    "ALL_CATEGORIES",
    "CATEGORY_DIRECTORIES",
    "Category",
    "EntityKind",
    "EntityRecord",
    "LOCAL_BRANCH",
    "LocationObservation",
    "MergedEntity",
    "category_for_directory",
    "id_sort_key",
]
