"""Update and merge workflows across sources."""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ..common.errors import AptlierError
from ..common.logger import get_logger
from ..repos.base import RepositoryManager, SourceKind
from ..repos.registry import SourceRegistry
from .context import RunContext
from .detector import ChangeDetector
from .models import SnapshotUpdate, snapshot_id
from .store import SnapshotStore

logger = get_logger("coordinator")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotCoordinator:
    """Drives per-source snapshot updates and the cross-source merge.

    Sources are processed one at a time in a fixed order. The store save at
    the end of each workflow is the only commit point: a failure before it
    leaves the durable pointers unchanged.
    """

    def __init__(
        self,
        manager: RepositoryManager,
        store: SnapshotStore,
        publish_name: str = "main",
        registry: Optional[SourceRegistry] = None,
        detector: Optional[ChangeDetector] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the coordinator.

        Args:
            manager: Repository manager performing the tool operations
            store: Durable snapshot pointers
            publish_name: Name used for merged snapshots
            registry: Source enumeration (built from ``manager`` if None)
            detector: Change detector (built from ``manager`` if None)
            clock: Source of the current time for run timestamps
        """
        self.manager = manager
        self.store = store
        self.publish_name = publish_name
        self.registry = registry or SourceRegistry(manager)
        self.detector = detector or ChangeDetector(manager)
        self.clock = clock
        self.context = self.new_context()

    def new_context(self) -> RunContext:
        return RunContext(self.store, clock=self.clock)

    def update_source(self, name: str, kind: SourceKind) -> SnapshotUpdate:
        """Snapshot one source, recording it as pending if it changed."""
        return self.detector.update(self.context, name, kind)

    def update_mirror(self, name: str) -> SnapshotUpdate:
        """Refresh a mirror from upstream, then snapshot it."""
        self.manager.update_mirror(name)
        return self.update_source(name, SourceKind.MIRROR)

    def update_selected(self, names: Sequence[str] = ()) -> List[SnapshotUpdate]:
        """Update the given mirrors, or every managed mirror, and save.

        Args:
            names: Mirrors to update in the given order; when empty, every
                mirror that already has a recorded snapshot, sorted by name

        Returns:
            One update per processed mirror
        """
        if not names:
            names = self.registry.managed_mirrors(self.context.loaded)
            logger.info(f"Updating managed mirrors: {', '.join(names) or '(none)'}")

        updates = [self.update_mirror(name) for name in names]
        self.save()
        return updates

    def add_mirror(self, name: str, args: Sequence[str]) -> SnapshotUpdate:
        """Create a mirror, take its first snapshot and save."""
        self.manager.create_mirror(name, args)
        update = self.update_mirror(name)
        self.save()
        return update

    def add_package(self, repo: str, files: Sequence[str]) -> SnapshotUpdate:
        """Add package files to a local repository, snapshot it and save."""
        self.manager.add_packages(repo, files)
        update = self.update_source(repo, SourceKind.REPO)
        self.save()
        return update

    def save(self) -> bool:
        """Persist pending pointers and start a fresh run context on success."""
        saved = self.context.save()
        if saved:
            self.context = self.new_context()
        return saved

    def merge_all(self) -> str:
        """Merge every current snapshot into one ``publish:`` snapshot.

        Returns:
            Name of the merged snapshot

        Raises:
            AptlierError: If no source has a snapshot yet
        """
        merged = snapshot_id(f"publish:{self.publish_name}", self.context.timestamp)
        sources = [pointer.snapshot_name for pointer in self.context.pointers()]
        if not sources:
            raise AptlierError("No snapshots to merge; add or update a mirror first")

        logger.info(f"Merging {len(sources)} snapshots into {merged}")
        self.manager.merge_snapshots(merged, sources)
        return merged
