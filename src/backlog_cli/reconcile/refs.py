"""Branch enumeration and read-only tree access at a ref."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from backlog_cli.core.git_ops import GitBackend, GitCommandError, is_network_error
from backlog_cli.errors import FetchError, NetworkUnavailable, RefAccessError

logger = logging.getLogger(__name__)


def _is_symbolic_head(name: str) -> bool:
    return name == "HEAD" or name.endswith("/HEAD")


class RefEnumerator:
    """Lists the branches whose trees take part in reconciliation."""

    def __init__(self, backend: GitBackend, remote_name: str = "origin") -> None:
        self.backend = backend
        self.remote_name = remote_name

    def list_branches(self, include_remote: bool) -> set[str]:
        """Local branches, plus ``<remote>/<name>`` and bare ``<name>`` when ``include_remote``.

        Symbolic heads are excluded. Missing remotes produce no entries.
        """
        names: set[str] = set()
        for ref in self.backend.list_local_refs():
            if not _is_symbolic_head(ref):
                names.add(ref)

        if include_remote:
            prefix = f"{self.remote_name}/"
            for ref in self.backend.list_remote_refs(self.remote_name):
                if _is_symbolic_head(ref) or not ref.startswith(prefix):
                    continue
                bare = ref[len(prefix):]
                if not bare:
                    continue
                names.add(ref)
                names.add(bare)
        return names

    def sorted_branches(self, include_remote: bool) -> list[str]:
        """:meth:`list_branches` in the order every fold must use."""
        return sorted(self.list_branches(include_remote))

    async def fetch(self) -> bool:
        """Fetch the remote, translating git failures into reconciliation errors.

        Returns:
            True if a fetch ran, False if it was skipped (disabled or no remote)

        Raises:
            NetworkUnavailable: The remote could not be reached
            FetchError: Any other fetch failure
        """
        try:
            return await asyncio.to_thread(self.backend.fetch, self.remote_name)
        except GitCommandError as exc:
            if is_network_error(str(exc)):
                logger.debug("Network error while fetching %s: %s", self.remote_name, exc)
                raise NetworkUnavailable(f"Cannot reach remote '{self.remote_name}'") from exc
            raise FetchError(self.remote_name, exc.stderr or str(exc)) from exc


class RefTreeReader:
    """Reads paths, contents and history at a branch without touching the working tree."""

    def __init__(self, backend: GitBackend) -> None:
        self.backend = backend

    async def list_files(self, branch: str, path_prefix: str, *, strict: bool = False) -> list[str]:
        """Recursive listing of ``path_prefix`` on ``branch``.

        An unknown branch yields ``[]``, or :class:`RefAccessError` when ``strict``.
        """
        if not strict:
            return await asyncio.to_thread(self.backend.list_files_at_ref, branch, path_prefix)
        try:
            return await asyncio.to_thread(self.backend.list_files_at_ref_strict, branch, path_prefix)
        except GitCommandError as exc:
            raise RefAccessError(branch, exc.stderr or str(exc)) from exc

    async def read_file(self, branch: str, path: str) -> str:
        return await asyncio.to_thread(self.backend.read_file_at_ref, branch, path)

    async def last_modified(self, branch: str, path: str) -> datetime | None:
        return await asyncio.to_thread(self.backend.last_modified_at, branch, path)


__all__ = ["RefEnumerator", "RefTreeReader"]
