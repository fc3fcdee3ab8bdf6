"""Repository manager abstraction over the aptly command-line tool.

The snapshot workflow talks to the repository tool only through
:class:`RepositoryManager`; :class:`AptlyManager` is the aptly binding.
"""

from .base import RepositoryManager, SourceKind
from .aptly import AptlyManager, IDENTICAL_SNAPSHOTS
from .registry import SourceEntry, SourceRegistry

__all__ = [
    "AptlyManager",
    "IDENTICAL_SNAPSHOTS",
    "RepositoryManager",
    "SourceEntry",
    "SourceKind",
    "SourceRegistry",
]
