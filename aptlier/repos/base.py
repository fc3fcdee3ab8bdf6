"""Base classes for repository managers.

Defines the interface of the external repository tool as consumed by the
snapshot workflow. Implementations only translate calls into tool
invocations; they hold no snapshot state of their own.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Sequence


class SourceKind(Enum):
    """What a snapshot is taken from."""

    MIRROR = "mirror"
    REPO = "repo"


class RepositoryManager(ABC):
    """Abstract base class for repository managers.

    Every method either succeeds or raises; a failing tool invocation is
    never reported through a return value.
    """

    @abstractmethod
    def create_mirror(self, name: str, args: Sequence[str]) -> None:
        """Create a mirror.

        Args:
            name: Mirror name
            args: Upstream URL, distribution and components
        """

    @abstractmethod
    def update_mirror(self, name: str) -> None:
        """Download the current upstream state of a mirror."""

    @abstractmethod
    def create_repo(self, name: str, args: Sequence[str] = ()) -> None:
        """Create a local repository."""

    @abstractmethod
    def add_packages(self, repo: str, files: Sequence[str]) -> None:
        """Add package files to a local repository."""

    @abstractmethod
    def list_mirrors(self) -> List[str]:
        """Return the names of all configured mirrors."""

    @abstractmethod
    def list_repos(self) -> List[str]:
        """Return the names of all local repositories."""

    @abstractmethod
    def create_snapshot(self, snapshot_name: str, kind: SourceKind, source: str) -> None:
        """Snapshot the current state of a mirror or repository.

        Args:
            snapshot_name: Identifier of the new snapshot (``name@timestamp``)
            kind: Whether ``source`` is a mirror or a local repository
            source: Mirror or repository name
        """

    @abstractmethod
    def diff_snapshots(self, old_snapshot: str, new_snapshot: str) -> str:
        """Return the textual difference between two snapshots."""

    @abstractmethod
    def drop_snapshot(self, snapshot_name: str) -> None:
        """Delete a snapshot."""

    @abstractmethod
    def merge_snapshots(self, destination: str, sources: Sequence[str]) -> None:
        """Merge ``sources`` into a new snapshot named ``destination``."""

    @abstractmethod
    def list_published(self) -> List[str]:
        """Return one line per published endpoint."""

    @abstractmethod
    def publish_snapshot(self, snapshot_name: str, distribution: str, prefix: str) -> None:
        """Publish a snapshot for the first time."""

    @abstractmethod
    def switch_published(self, distribution: str, prefix: str, snapshot_name: str) -> None:
        """Point an existing published endpoint at another snapshot."""
