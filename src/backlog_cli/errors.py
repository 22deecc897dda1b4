"""Error taxonomy for cross-branch reconciliation.

:class:`LocalStoreError` is fatal, as is :class:`ConfigMissing` for callers
that need an initialised project. :class:`FetchError` aborts a reconciled view
but not id allocation. The others describe a single branch or file, or the
network, and are absorbed by the engine.
"""

from __future__ import annotations

from pathlib import Path


class ReconcileError(Exception):
    """Base class for reconciliation failures."""


class NetworkUnavailable(ReconcileError):
    """The remote could not be reached; work continues without fetching."""


class FetchError(ReconcileError):
    """``git fetch`` failed for a reason other than the network, such as a bad remote URL."""

    def __init__(self, remote: str, detail: str) -> None:
        self.remote = remote
        self.detail = detail
        super().__init__(f"Cannot fetch remote '{remote}': {detail}")


class RefAccessError(ReconcileError):
    """A branch could not be read; its contribution is dropped."""

    def __init__(self, branch: str, detail: str) -> None:
        self.branch = branch
        self.detail = detail
        super().__init__(f"Cannot access branch '{branch}': {detail}")


class ParseError(ReconcileError):
    """A single entity file is malformed and is skipped."""

    def __init__(self, path: str | Path, detail: str) -> None:
        self.path = str(path)
        self.detail = detail
        super().__init__(f"Cannot parse {self.path}: {detail}")


class ConfigMissing(ReconcileError):
    """No backlog configuration was found where a project was required."""


class ConfigError(ReconcileError):
    """The backlog configuration holds an invalid value."""


class LocalStoreError(ReconcileError):
    """The local entity store could not be read at all."""


__all__ = [
    "ConfigError",
    "ConfigMissing",
    "FetchError",
    "LocalStoreError",
    "NetworkUnavailable",
    "ParseError",
    "RefAccessError",
    "ReconcileError",
]
