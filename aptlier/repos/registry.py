"""Registry of the sources known to the repository tool.

Enumerates mirrors and local repositories and relates them to the
snapshot pointers recorded in the workspace.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

from ..common.logger import get_logger
from .base import RepositoryManager, SourceKind

logger = get_logger("registry")


@dataclass(frozen=True)
class SourceEntry:
    """A mirror or repository together with its last snapshot timestamp."""

    name: str
    kind: SourceKind
    timestamp: Optional[str] = None


class SourceRegistry:
    """Lists the mirrors and repositories managed by the repository tool."""

    def __init__(self, manager: RepositoryManager):
        self.manager = manager

    def mirrors(self) -> List[str]:
        """Return all mirror names, sorted."""
        return sorted(self.manager.list_mirrors())

    def repos(self) -> List[str]:
        """Return all local repository names, sorted."""
        return sorted(self.manager.list_repos())

    def managed_mirrors(self, loaded: Mapping[str, str]) -> List[str]:
        """Return the sorted mirrors that already have a recorded snapshot.

        Mirrors that were created outside aptlier, or never snapshotted, are
        left out so a bulk update does not start tracking them silently.

        Args:
            loaded: Durable snapshot pointers, name -> timestamp

        Returns:
            Sorted list of mirror names
        """
        selected = [name for name in self.mirrors() if name in loaded]
        logger.debug(f"Selected managed mirrors: {selected}")
        return selected

    def describe(self, loaded: Mapping[str, str]) -> List[SourceEntry]:
        """Return every mirror then every repository with its timestamp."""
        entries = [
            SourceEntry(name, SourceKind.MIRROR, loaded.get(name)) for name in self.mirrors()
        ]
        entries.extend(
            SourceEntry(name, SourceKind.REPO, loaded.get(name)) for name in self.repos()
        )
        return entries
