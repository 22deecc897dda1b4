"""Backlog project configuration.

Configuration is read from ``backlog/config.yml`` and turned into explicit
values that callers pass into every reconciliation entry point. Nothing is
cached at module level.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml

from backlog_cli.errors import ConfigError, ConfigMissing

ResolutionStrategy = Literal["most_recent", "most_progressed"]

RESOLUTION_STRATEGIES: tuple[str, ...] = ("most_recent", "most_progressed")
DEFAULT_STATUSES: tuple[str, ...] = ("To Do", "In Progress", "Done")
DEFAULT_BACKLOG_DIR = "backlog"
CONFIG_FILENAME = "config.yml"
CONFIG_DIR_CANDIDATES = ("backlog", ".backlog")

REMOTE_OPERATIONS_ENV = "BACKLOG_REMOTE_OPERATIONS"


@dataclass(frozen=True)
class ReconciliationConfig:
    """Inputs controlling id allocation and cross-branch reconciliation."""

    status_order: tuple[str, ...] = DEFAULT_STATUSES
    resolution_strategy: ResolutionStrategy = "most_progressed"
    remote_operations_enabled: bool = True
    id_padding_width: int | None = None
    remote_name: str = "origin"
    backlog_dir: str = DEFAULT_BACKLOG_DIR

    def local_only(self) -> "ReconciliationConfig":
        """Copy of this config with remote operations switched off."""
        return replace(self, remote_operations_enabled=False)


@dataclass
class BacklogConfig:
    """Project configuration as stored in ``config.yml``."""

    project_name: str = ""
    statuses: list[str] = field(default_factory=lambda: list(DEFAULT_STATUSES))
    task_resolution_strategy: ResolutionStrategy = "most_progressed"
    remote_operations: bool = True
    zero_padded_ids: int | None = None
    backlog_directory: str = DEFAULT_BACKLOG_DIR
    remote_name: str = "origin"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, backlog_directory: str = DEFAULT_BACKLOG_DIR) -> "BacklogConfig":
        """Build from the raw YAML mapping, validating each known key."""
        statuses = data.get("statuses", list(DEFAULT_STATUSES))
        if not isinstance(statuses, list) or not all(isinstance(s, str) for s in statuses):
            raise ConfigError("statuses must be a list of strings")

        strategy = data.get("task_resolution_strategy", "most_progressed")
        if strategy not in RESOLUTION_STRATEGIES:
            raise ConfigError(
                f"task_resolution_strategy must be one of {', '.join(RESOLUTION_STRATEGIES)}, got {strategy!r}"
            )

        padding = data.get("zero_padded_ids")
        if padding is not None:
            try:
                padding = int(padding)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"zero_padded_ids must be an integer, got {padding!r}") from exc
            if padding < 0:
                raise ConfigError("zero_padded_ids must not be negative")

        return cls(
            project_name=str(data.get("project_name") or ""),
            statuses=list(statuses),
            task_resolution_strategy=strategy,
            remote_operations=_parse_bool(data.get("remote_operations", True), "remote_operations"),
            zero_padded_ids=padding,
            backlog_directory=backlog_directory,
            remote_name=str(data.get("remote_name") or "origin"),
        )

    def reconciliation(self) -> ReconciliationConfig:
        return ReconciliationConfig(
            status_order=tuple(self.statuses),
            resolution_strategy=self.task_resolution_strategy,
            remote_operations_enabled=self.remote_operations,
            id_padding_width=self.zero_padded_ids or None,
            remote_name=self.remote_name,
            backlog_dir=self.backlog_directory,
        )


def _parse_bool(value: object, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ConfigError(f"{key} must be true or false, got {value!r}")


def find_config_path(repo_root: Path) -> Path | None:
    """Return the first existing ``config.yml`` under a known backlog directory."""
    for directory in CONFIG_DIR_CANDIDATES:
        candidate = repo_root / directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(
    repo_root: Path,
    *,
    required: bool = True,
    env: Mapping[str, str] | None = None,
) -> BacklogConfig:
    """Load the project configuration.

    Args:
        repo_root: Repository root containing the backlog directory
        required: Raise :class:`ConfigMissing` when no config file exists
        env: Environment mapping (defaults to ``os.environ``)

    Returns:
        Parsed :class:`BacklogConfig` (defaults when absent and not required)

    Raises:
        ConfigMissing: No config file and ``required`` is True
        ConfigError: The file is unreadable or holds invalid values
    """
    env = os.environ if env is None else env
    config_path = find_config_path(repo_root)

    if config_path is None:
        if required:
            raise ConfigMissing(
                f"No backlog project found in {repo_root} (expected {DEFAULT_BACKLOG_DIR}/{CONFIG_FILENAME})"
            )
        config = BacklogConfig()
    else:
        try:
            raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Cannot read {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        config = BacklogConfig.from_dict(raw, backlog_directory=config_path.parent.name)

    override = env.get(REMOTE_OPERATIONS_ENV)
    if override is not None:
        config.remote_operations = _parse_bool(override, REMOTE_OPERATIONS_ENV)
    return config


__all__ = [
    "BacklogConfig",
    "CONFIG_FILENAME",
    "DEFAULT_STATUSES",
    "REMOTE_OPERATIONS_ENV",
    "RESOLUTION_STRATEGIES",
    "ReconciliationConfig",
    "ResolutionStrategy",
    "find_config_path",
    "load_config",
]
