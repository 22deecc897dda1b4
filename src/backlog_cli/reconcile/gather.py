"""Fan-out/gather with per-unit failure isolation.

Each unit of branch work is awaited concurrently and turned into a tagged
result. Nothing is folded until every unit has finished.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, Iterable, TypeVar, Union

from backlog_cli.errors import ReconcileError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures a single unit may absorb; anything else is a bug and propagates.
ABSORBED_ERRORS: tuple[type[BaseException], ...] = (ReconcileError, OSError, UnicodeDecodeError)


@dataclass(frozen=True)
class BranchOk(Generic[T]):
    """A unit that completed and contributes ``value``."""

    label: str
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class BranchSkip:
    """A unit that failed and contributes nothing."""

    label: str
    reason: str

    @property
    def ok(self) -> bool:
        return False


BranchResult = Union[BranchOk[T], BranchSkip]


async def _capture(label: str, work: Awaitable[T]) -> BranchResult[T]:
    try:
        return BranchOk(label, await work)
    except ABSORBED_ERRORS as exc:
        logger.debug("Skipping %s: %s", label, exc)
        return BranchSkip(label, str(exc))


async def gather_tolerant(units: Iterable[tuple[str, Awaitable[T]]]) -> list[BranchResult[T]]:
    """Await every ``(label, awaitable)`` concurrently; results keep input order."""
    return list(await asyncio.gather(*(_capture(label, work) for label, work in units)))


def successes(results: Iterable[BranchResult[T]]) -> list[BranchOk[T]]:
    return [result for result in results if isinstance(result, BranchOk)]


def skips(results: Iterable[BranchResult[T]]) -> list[BranchSkip]:
    return [result for result in results if isinstance(result, BranchSkip)]


__all__ = [
    "ABSORBED_ERRORS",
    "BranchOk",
    "BranchResult",
    "BranchSkip",
    "gather_tolerant",
    "skips",
    "successes",
]
