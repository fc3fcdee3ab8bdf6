"""Data structures shared by the snapshot workflow."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from ..repos.base import SourceKind

SEPARATOR = "@"


def snapshot_id(source_name: str, timestamp: str) -> str:
    """Build the repository tool's identifier for a snapshot."""
    return f"{source_name}{SEPARATOR}{timestamp}"


def effective_snapshots(
    loaded: Mapping[str, str], pending: Mapping[str, str]
) -> Dict[str, str]:
    """Overlay pending pointers on the loaded ones.

    Neither argument is modified; pending wins for a source present in both.
    """
    snapshots = dict(loaded)
    snapshots.update(pending)
    return snapshots


@dataclass(frozen=True)
class SnapshotPointer:
    """Latest known snapshot of a mirror or repository."""

    source_name: str
    timestamp: str

    @property
    def snapshot_name(self) -> str:
        return snapshot_id(self.source_name, self.timestamp)


@dataclass(frozen=True)
class SnapshotUpdate:
    """Outcome of snapshotting one source.

    ``snapshot_name`` is None when the new snapshot matched the previous one
    and was dropped. ``diff`` holds the tool's diff output for a changed
    source that had a previous snapshot.
    """

    source_name: str
    kind: SourceKind
    snapshot_name: Optional[str] = None
    diff: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.snapshot_name is not None


@dataclass(frozen=True)
class PublishTarget:
    """Published endpoint: distribution (release) and publish name (prefix)."""

    release: str
    publish_name: str


class PublishAction(Enum):
    """How a merged snapshot was made live."""

    PUBLISH = "publish"
    SWITCH = "switch"


@dataclass(frozen=True)
class PublishResult:
    """Merged snapshot that went live and how."""

    snapshot_name: str
    action: PublishAction
    target: PublishTarget
