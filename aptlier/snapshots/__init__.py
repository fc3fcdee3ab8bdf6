"""Snapshot bookkeeping: durable pointers, change detection, merge and publish."""

from .context import RunContext, utc_timestamp
from .coordinator import SnapshotCoordinator
from .detector import ChangeDetector
from .models import (
    PublishAction,
    PublishResult,
    PublishTarget,
    SnapshotPointer,
    SnapshotUpdate,
    effective_snapshots,
)
from .publisher import Publisher
from .store import AtomicRecordStore, SnapshotStore

__all__ = [
    "AtomicRecordStore",
    "ChangeDetector",
    "PublishAction",
    "PublishResult",
    "PublishTarget",
    "Publisher",
    "RunContext",
    "SnapshotCoordinator",
    "SnapshotPointer",
    "SnapshotStore",
    "SnapshotUpdate",
    "effective_snapshots",
    "utc_timestamp",
]
