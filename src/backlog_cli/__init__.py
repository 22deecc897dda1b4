"""Backlog CLI: git-backed task backlog with a cross-branch reconciled view."""

__version__ = "0.4.0"
