"""Publishing of the merged snapshot."""

from ..common.logger import get_logger
from ..repos.base import RepositoryManager
from .coordinator import SnapshotCoordinator
from .models import PublishAction, PublishResult, PublishTarget

logger = get_logger("publisher")


class Publisher:
    """Makes the merged snapshot live for a publish target.

    An unpublished target gets an initial publish; a published one is
    switched to the new snapshot. The switch happens even when the merged
    content equals what is already live.
    """

    def __init__(
        self,
        coordinator: SnapshotCoordinator,
        manager: RepositoryManager,
        target: PublishTarget,
    ):
        self.coordinator = coordinator
        self.manager = manager
        self.target = target

    def is_published(self) -> bool:
        """Check whether the target already has an endpoint.

        ``publish list -raw`` prints ``<prefix> <distribution>`` per line and
        both must match the target. A line holding only the prefix matches
        any release.
        """
        for line in self.manager.list_published():
            fields = line.split()
            if not fields or fields[0] != self.target.publish_name:
                continue
            if len(fields) == 1 or fields[1] == self.target.release:
                return True
        return False

    def publish(self) -> PublishResult:
        """Merge all current snapshots and publish or switch to the result.

        Raises:
            CommandError: If merging, listing or publishing fails
        """
        snapshot_name = self.coordinator.merge_all()

        if self.is_published():
            self.manager.switch_published(
                self.target.release, self.target.publish_name, snapshot_name
            )
            action = PublishAction.SWITCH
        else:
            self.manager.publish_snapshot(
                snapshot_name, self.target.release, self.target.publish_name
            )
            action = PublishAction.PUBLISH

        logger.info(f"{action.value}: {self.target.publish_name} -> {snapshot_name}")
        return PublishResult(snapshot_name, action, self.target)
