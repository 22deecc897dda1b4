"""Cross-branch entity reconciliation.

This package turns many branches' copies of the backlog into one read-only
view: collision-free id allocation (ids.py), canonical record selection
(conflicts.py), latest-location resolution (locations.py) and the view
builder tying them together (view.py). Nothing here writes to the working
tree or to branch history.
"""

from backlog_cli.reconcile.conflicts import merge_records, resolve_conflict
from backlog_cli.reconcile.gather import BranchOk, BranchSkip, gather_tolerant
from backlog_cli.reconcile.ids import IdAllocator
from backlog_cli.reconcile.locations import dedupe_observations, resolve_locations
from backlog_cli.reconcile.refs import RefEnumerator, RefTreeReader
from backlog_cli.reconcile.snapshots import EntitySnapshotCollector, Snapshot
from backlog_cli.reconcile.view import ReconciledViewBuilder

__all__ = [
    # Branch access
    "RefEnumerator",
    "RefTreeReader",
    # Fan-out
    "BranchOk",
    "BranchSkip",
    "gather_tolerant",
    # Engine
    "EntitySnapshotCollector",
    "IdAllocator",
    "ReconciledViewBuilder",
    "Snapshot",
    "dedupe_observations",
    "merge_records",
    "resolve_conflict",
    "resolve_locations",
]
