"""Detection of snapshots that changed nothing."""

from ..common.logger import get_logger
from ..repos.aptly import IDENTICAL_SNAPSHOTS
from ..repos.base import RepositoryManager, SourceKind
from .context import RunContext
from .models import SnapshotUpdate

logger = get_logger("detector")


class ChangeDetector:
    """Snapshots a source and keeps the snapshot only if it differs.

    A source without a previous snapshot always counts as changed. Otherwise
    the repository tool diffs old against new; an identical result drops the
    new snapshot and leaves the pending pointers untouched, so re-running an
    update without upstream changes records nothing.
    """

    def __init__(
        self,
        manager: RepositoryManager,
        identical_marker: str = IDENTICAL_SNAPSHOTS,
    ):
        self.manager = manager
        self.identical_marker = identical_marker

    def update(self, context: RunContext, source_name: str, kind: SourceKind) -> SnapshotUpdate:
        """Snapshot ``source_name`` and record it in ``context`` if it changed.

        Raises:
            CommandError: If creating, diffing or dropping the snapshot fails
        """
        new_snapshot = context.snapshot_name(source_name)
        self.manager.create_snapshot(new_snapshot, kind, source_name)

        old_snapshot = context.loaded_snapshot(source_name)
        if old_snapshot is None:
            logger.info(f"First snapshot of {kind.value} {source_name}: {new_snapshot}")
            context.record(source_name)
            return SnapshotUpdate(source_name, kind, new_snapshot)

        diff = self.manager.diff_snapshots(old_snapshot, new_snapshot)
        if diff == self.identical_marker:
            logger.info(f"No changes in {source_name}, undoing snapshot {new_snapshot}")
            self.manager.drop_snapshot(new_snapshot)
            return SnapshotUpdate(source_name, kind)

        logger.info(f"{source_name} changed since {old_snapshot}:\n{diff.rstrip()}")
        context.record(source_name)
        return SnapshotUpdate(source_name, kind, new_snapshot, diff)
