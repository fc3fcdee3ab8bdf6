"""Per-run snapshot state.

A :class:`RunContext` is created at the start of an operation and dropped
after a successful save. It fixes the timestamp used for every snapshot of
the run, read from the clock the first time it is needed, and keeps the two
layers of pointers apart: *loaded* (durable) and *pending* (changed during
this run).
"""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from .models import SnapshotPointer, effective_snapshots, snapshot_id
from .store import SnapshotStore

TIMESTAMP_FORMAT = "%Y%m%d.%H%M"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Return a sortable UTC timestamp with minute resolution."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class RunContext:
    """Timestamp and pointer state for one run."""

    def __init__(
        self,
        store: SnapshotStore,
        timestamp: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self._timestamp = timestamp
        self._clock = clock
        self._pending: Mapping[str, str] = MappingProxyType({})

    @property
    def timestamp(self) -> str:
        if self._timestamp is None:
            now = self._clock() if self._clock is not None else None
            self._timestamp = utc_timestamp(now)
        return self._timestamp

    @property
    def loaded(self) -> Mapping[str, str]:
        return MappingProxyType(self.store.load())

    @property
    def pending(self) -> Mapping[str, str]:
        return self._pending

    @property
    def snapshots(self) -> Dict[str, str]:
        """Loaded pointers overlaid by pending ones."""
        return effective_snapshots(self.loaded, self._pending)

    def pointers(self) -> List[SnapshotPointer]:
        """Effective pointers ordered by their snapshot identifier."""
        pointers = [SnapshotPointer(name, ts) for name, ts in self.snapshots.items()]
        return sorted(pointers, key=lambda pointer: pointer.snapshot_name)

    def snapshot_name(self, source_name: str) -> str:
        """Identifier of the snapshot this run creates for ``source_name``."""
        return snapshot_id(source_name, self.timestamp)

    def loaded_snapshot(self, source_name: str) -> Optional[str]:
        """Identifier of the durable snapshot for ``source_name``, if any."""
        timestamp = self.loaded.get(source_name)
        if timestamp is None:
            return None
        return SnapshotPointer(source_name, timestamp).snapshot_name

    def record(self, source_name: str) -> None:
        """Mark ``source_name`` as changed in this run."""
        self._pending = MappingProxyType({**self._pending, source_name: self.timestamp})

    def save(self) -> bool:
        """Persist pending pointers; see :meth:`SnapshotStore.save`."""
        return self.store.save(self._pending)
