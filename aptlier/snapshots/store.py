"""Durable storage of snapshot pointers.

The snapshots file holds one ``name@timestamp`` record per line, sorted.
Writes never modify the live file in place::

    1. write   <file>.tmp
    2. unlink  <file>~          (previous backup, if any)
    3. link    <file> -> <file>~ (current version, if any)
    4. rename  <file>.tmp -> <file>

A crash before step 4 leaves the old file in place; after it the new one.
In both cases ``<file>~`` holds the version before the last save.
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..common.errors import MalformedRecordError
from ..common.logger import get_logger
from .models import SEPARATOR, effective_snapshots

logger = get_logger("store")


class AtomicRecordStore:
    """A flat ``key<sep>value`` text file replaced atomically on write."""

    def __init__(self, path: Path, separator: str = SEPARATOR):
        self.path = Path(path)
        self.separator = separator

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + "~")

    def load(self) -> Dict[str, str]:
        """Read all records.

        A missing file is an empty store. Blank lines are ignored.

        Raises:
            MalformedRecordError: If a line lacks the separator, the key or
                the value
        """
        records: Dict[str, str] = {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                for lineno, raw in enumerate(f, start=1):
                    line = raw.strip()
                    if not line:
                        continue
                    key, sep, value = line.partition(self.separator)
                    if not sep or not key or not value:
                        raise MalformedRecordError(str(self.path), lineno, line)
                    records[key] = value
        except FileNotFoundError:
            logger.debug(f"{self.path} does not exist, starting empty")
            return {}
        return records

    def serialize(self, records: Mapping[str, str]) -> str:
        """Render records as sorted lines."""
        lines = sorted(f"{key}{self.separator}{value}\n" for key, value in records.items())
        return "".join(lines)

    def write(self, records: Mapping[str, str]) -> None:
        """Replace the file's contents with ``records``."""
        with self.tmp_path.open("w", encoding="utf-8") as f:
            f.write(self.serialize(records))
            f.flush()
            os.fsync(f.fileno())

        if self.backup_path.exists():
            self.backup_path.unlink()
        if self.path.exists():
            os.link(self.path, self.backup_path)
        os.replace(self.tmp_path, self.path)


class SnapshotStore:
    """Snapshot pointers (source name -> timestamp) for one workspace.

    The file is read at most once between saves.
    """

    def __init__(self, path: Path):
        self.records = AtomicRecordStore(path)
        self._loaded: Optional[Dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self.records.path

    def load(self) -> Dict[str, str]:
        """Return the durable pointers, reading the file on first use."""
        if self._loaded is None:
            self._loaded = self.records.load()
        return dict(self._loaded)

    def save(self, pending: Mapping[str, str]) -> bool:
        """Persist ``pending`` on top of the loaded pointers.

        Args:
            pending: Pointers changed during this run

        Returns:
            False without touching the disk when ``pending`` is empty,
            True once the new file is in place
        """
        if not pending:
            logger.info("Snapshots not modified, not saving")
            return False

        snapshots = effective_snapshots(self.load(), pending)
        logger.info(f"Saving snapshots {self.path}, changed: {dict(pending)}")
        self.records.write(snapshots)
        self.reset()
        return True

    def reset(self) -> None:
        """Forget the cached pointers so the next load re-reads the file."""
        self._loaded = None
