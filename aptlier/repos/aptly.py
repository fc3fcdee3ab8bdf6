"""Aptly repository manager for Debian packages.

Wraps the aptly command-line tool. Every command is run against the
workspace's own ``aptly.json`` so several working directories never share
an aptly database.
"""

from pathlib import Path
from typing import List, Sequence

from ..common.command import CommandRunner
from ..common.logger import get_logger
from .base import RepositoryManager, SourceKind

logger = get_logger("aptly")

# Exact output of ``aptly snapshot diff`` when nothing changed.
IDENTICAL_SNAPSHOTS = "Snapshots are identical.\n"


class AptlyManager(RepositoryManager):
    """Repository manager using Aptly for Debian packages.

    Aptly handles:
    - Mirroring from upstream repositories
    - Local repositories for custom-built packages
    - Snapshot creation, diffing and merging
    - Repository publishing with GPG signing
    """

    def __init__(
        self,
        runner: CommandRunner,
        config_path: Path,
        aptly_command: str = "aptly",
    ):
        """Initialize Aptly manager.

        Args:
            runner: Runner used for every aptly invocation
            config_path: Path to the workspace's aptly.json
            aptly_command: aptly executable
        """
        self.runner = runner
        self.config_path = Path(config_path)
        self.aptly_command = aptly_command

    def cmdline(self, *args: str) -> List[str]:
        """Build a full aptly command line."""
        return [self.aptly_command, f"-config={self.config_path}", *args]

    def run(self, *args: str) -> None:
        """Run an aptly command, output going to the terminal."""
        self.runner.run(self.cmdline(*args))

    def output(self, *args: str) -> str:
        """Run an aptly command and return its output."""
        return self.runner.capture(self.cmdline(*args))

    def lines(self, *args: str) -> List[str]:
        """Run an aptly command and return its stripped output lines."""
        return self.runner.capture_lines(self.cmdline(*args))

    def create_mirror(self, name: str, args: Sequence[str]) -> None:
        self.run("mirror", "create", name, *args)
        logger.info(f"Created mirror {name}")

    def update_mirror(self, name: str) -> None:
        self.run("mirror", "update", name)

    def create_repo(self, name: str, args: Sequence[str] = ()) -> None:
        self.run("repo", "create", *args, name)
        logger.info(f"Created repo {name}")

    def add_packages(self, repo: str, files: Sequence[str]) -> None:
        self.run("repo", "add", repo, *files)

    def list_mirrors(self) -> List[str]:
        return self.lines("mirror", "list", "-raw")

    def list_repos(self) -> List[str]:
        return self.lines("repo", "list", "-raw")

    def create_snapshot(self, snapshot_name: str, kind: SourceKind, source: str) -> None:
        self.run("snapshot", "create", snapshot_name, "from", kind.value, source)

    def diff_snapshots(self, old_snapshot: str, new_snapshot: str) -> str:
        logger.info(f"Diffing snapshots: {old_snapshot} -> {new_snapshot}")
        return self.output("snapshot", "diff", old_snapshot, new_snapshot)

    def drop_snapshot(self, snapshot_name: str) -> None:
        self.run("snapshot", "drop", snapshot_name)

    def merge_snapshots(self, destination: str, sources: Sequence[str]) -> None:
        self.run("snapshot", "merge", destination, *sources)

    def list_published(self) -> List[str]:
        return self.lines("publish", "list", "-raw")

    def publish_snapshot(self, snapshot_name: str, distribution: str, prefix: str) -> None:
        self.run("publish", "snapshot", f"-distribution={distribution}", snapshot_name, prefix)
        logger.info(f"Published {snapshot_name} as {prefix}/{distribution}")

    def switch_published(self, distribution: str, prefix: str, snapshot_name: str) -> None:
        self.run("publish", "switch", distribution, prefix, snapshot_name)
        logger.info(f"Switched {prefix}/{distribution} to {snapshot_name}")

    def cleanup_db(self) -> None:
        """Remove unreferenced packages and files from the aptly database."""
        self.run("db", "cleanup")
