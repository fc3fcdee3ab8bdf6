"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from aptlier.common.errors import CommandError
from aptlier.repos.aptly import IDENTICAL_SNAPSHOTS
from aptlier.repos.base import RepositoryManager, SourceKind
from aptlier.snapshots.coordinator import SnapshotCoordinator
from aptlier.snapshots.store import SnapshotStore

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 33, tzinfo=timezone.utc)
FIXED_TIMESTAMP = "20240305.1407"


class FakeRepoManager(RepositoryManager):
    """In-memory repository manager recording every call it receives."""

    def __init__(self):
        self.calls: List[Tuple] = []
        self.mirrors: List[str] = []
        self.repos: List[str] = []
        self.published: List[str] = []
        self.snapshots: List[str] = []
        self.diff_output: str = "  Arch   | Package\n+ all    | hello_2.10-3\n"
        self.diffs: Dict[Tuple[str, str], str] = {}
        self.fail_on: Optional[str] = None

    def _call(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation == self.fail_on:
            raise CommandError(["aptly", operation], 1)

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    def create_mirror(self, name: str, args: Sequence[str]) -> None:
        self._call("create_mirror", name, list(args))
        self.mirrors.append(name)

    def update_mirror(self, name: str) -> None:
        self._call("update_mirror", name)

    def create_repo(self, name: str, args: Sequence[str] = ()) -> None:
        self._call("create_repo", name, list(args))
        self.repos.append(name)

    def add_packages(self, repo: str, files: Sequence[str]) -> None:
        self._call("add_packages", repo, list(files))

    def list_mirrors(self) -> List[str]:
        self._call("list_mirrors")
        return list(self.mirrors)

    def list_repos(self) -> List[str]:
        self._call("list_repos")
        return list(self.repos)

    def create_snapshot(self, snapshot_name: str, kind: SourceKind, source: str) -> None:
        self._call("create_snapshot", snapshot_name, kind, source)
        self.snapshots.append(snapshot_name)

    def diff_snapshots(self, old_snapshot: str, new_snapshot: str) -> str:
        self._call("diff_snapshots", old_snapshot, new_snapshot)
        return self.diffs.get((old_snapshot, new_snapshot), self.diff_output)

    def drop_snapshot(self, snapshot_name: str) -> None:
        self._call("drop_snapshot", snapshot_name)
        self.snapshots.remove(snapshot_name)

    def merge_snapshots(self, destination: str, sources: Sequence[str]) -> None:
        self._call("merge_snapshots", destination, list(sources))
        self.snapshots.append(destination)

    def list_published(self) -> List[str]:
        self._call("list_published")
        return list(self.published)

    def publish_snapshot(self, snapshot_name: str, distribution: str, prefix: str) -> None:
        self._call("publish_snapshot", snapshot_name, distribution, prefix)
        self.published.append(f"{prefix} {distribution}")

    def switch_published(self, distribution: str, prefix: str, snapshot_name: str) -> None:
        self._call("switch_published", distribution, prefix, snapshot_name)

    def identical(self) -> None:
        """Make every later diff report identical snapshots."""
        self.diff_output = IDENTICAL_SNAPSHOTS


@pytest.fixture
def fake_manager():
    """Recording repository manager."""
    return FakeRepoManager()


@pytest.fixture
def snapshots_path(tmp_path):
    """Location of the durable snapshots file."""
    return tmp_path / "snapshots"


@pytest.fixture
def store(snapshots_path):
    """Snapshot store backed by a temporary file."""
    return SnapshotStore(snapshots_path)


@pytest.fixture
def coordinator(fake_manager, store):
    """Coordinator with a fixed clock."""
    return SnapshotCoordinator(
        fake_manager,
        store,
        publish_name="main",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def run_timestamp():
    """Timestamp produced by the coordinator's fixed clock."""
    return FIXED_TIMESTAMP
