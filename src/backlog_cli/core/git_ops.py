"""Git and subprocess helpers for the Backlog CLI.

All helpers here are read-only with respect to the working tree: they list
refs, list trees and show blobs at a ref, but never check out, commit or push.
The only network-facing call is :meth:`GitBackend.fetch`.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

# Substrings (lower-cased) that classify a git failure as a network problem.
NETWORK_ERROR_PATTERNS = (
    "could not resolve host",
    "connection refused",
    "network is unreachable",
    "timeout",
    "no route to host",
    "connection timed out",
    "temporary failure in name resolution",
    "operation timed out",
)


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Git command failed (exit code {returncode}): git {' '.join(args)}\n{stderr}".rstrip()
        )


def is_git_repo(path: Path | None = None) -> bool:
    """Return True when the provided path lives inside a git repository."""
    target = (path or Path.cwd()).resolve()
    if not target.is_dir():
        return False
    try:
        subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            check=True,
            capture_output=True,
            cwd=target,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def has_remote(repo_path: Path, remote_name: str = "origin") -> bool:
    """Check if repository has a configured remote.

    Args:
        repo_path: Repository root path
        remote_name: Remote name to check (default: "origin")

    Returns:
        True if remote exists, False otherwise
    """
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote_name],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=repo_path,
            check=False,
        )
        return result.returncode == 0
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def is_network_error(message: str) -> bool:
    """Return True when a git error message describes a network failure."""
    lowered = message.lower()
    return any(pattern in lowered for pattern in NETWORK_ERROR_PATTERNS)


def _split_lines(stdout: str) -> list[str]:
    return [line.strip() for line in stdout.splitlines() if line.strip()]


class GitBackend:
    """Read-only view of a git repository used by the reconciliation engine.

    Every method runs a single ``git`` subprocess in ``repo_root``. Methods that
    list or read return empty values when git fails; ``*_strict`` variants and
    :meth:`fetch` raise :class:`GitCommandError` instead so callers can decide.
    """

    def __init__(self, repo_root: Path, *, remote_operations: bool = True) -> None:
        self.repo_root = Path(repo_root)
        self.remote_operations = remote_operations

    def _git(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.repo_root,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitCommandError(args, 127, str(exc)) from exc
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, (result.stderr or "").strip())
        return result.stdout or ""

    def is_repo(self) -> bool:
        return is_git_repo(self.repo_root)

    def list_local_refs(self) -> list[str]:
        try:
            return _split_lines(self._git("branch", "--format=%(refname:short)"))
        except GitCommandError as exc:
            logger.debug("Could not list local branches: %s", exc)
            return []

    def list_remote_refs(self, remote_name: str = "origin") -> list[str]:
        """Return remote-tracking refs of ``remote_name`` as ``<remote>/<name>``."""
        try:
            refs = _split_lines(self._git("branch", "-r", "--format=%(refname:short)"))
        except GitCommandError as exc:
            logger.debug("Could not list remote branches for %s: %s", remote_name, exc)
            return []
        prefix = f"{remote_name}/"
        return [ref for ref in refs if ref.startswith(prefix)]

    def fetch(self, remote_name: str = "origin") -> bool:
        """Fetch ``remote_name``; returns False when skipped.

        Skipped when remote operations are disabled or the remote is not
        configured. Network failures propagate as :class:`GitCommandError`
        so the caller can classify them with :func:`is_network_error`.
        """
        if not self.remote_operations:
            logger.debug("Remote operations are disabled; skipping fetch")
            return False
        if not has_remote(self.repo_root, remote_name):
            logger.debug("Remote %s is not configured; skipping fetch", remote_name)
            return False
        self._git("fetch", remote_name)
        return True

    def list_files_at_ref_strict(self, ref: str, path_prefix: str) -> list[str]:
        return _split_lines(self._git("ls-tree", "-r", "--name-only", ref, "--", path_prefix))

    def list_files_at_ref(self, ref: str, path_prefix: str) -> list[str]:
        try:
            return self.list_files_at_ref_strict(ref, path_prefix)
        except GitCommandError as exc:
            logger.debug("Could not list %s at %s: %s", path_prefix, ref, exc)
            return []

    def read_file_at_ref(self, ref: str, path: str) -> str:
        try:
            return self._git("show", f"{ref}:{path}")
        except GitCommandError as exc:
            logger.debug("Could not read %s at %s: %s", path, ref, exc)
            return ""

    def last_modified_at(self, ref: str, path: str) -> datetime | None:
        """Author date of the last commit reachable from ``ref`` touching ``path``."""
        try:
            stamp = self._git("log", "-1", "--format=%aI", ref, "--", path).strip()
        except GitCommandError as exc:
            logger.debug("Could not read history of %s at %s: %s", path, ref, exc)
            return None
        if not stamp:
            return None
        try:
            return datetime.fromisoformat(stamp)
        except ValueError:
            logger.debug("Unparseable commit date %r for %s at %s", stamp, path, ref)
            return None


__all__ = [
    "GitBackend",
    "GitCommandError",
    "NETWORK_ERROR_PATTERNS",
    "has_remote",
    "is_git_repo",
    "is_network_error",
]
