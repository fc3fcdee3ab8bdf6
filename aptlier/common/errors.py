"""Exception hierarchy for aptlier."""

from typing import Optional, Sequence


class AptlierError(Exception):
    """Base class for all errors raised by aptlier."""


class CommandError(AptlierError):
    """An external command (aptly, gpg) failed or could not be run."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int],
        stderr: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        reason = reason or f"exit status {returncode}"
        super().__init__(f"FATAL: {reason} ({' '.join(self.command)})")


class MalformedRecordError(AptlierError):
    """A line in a record file could not be parsed."""

    def __init__(self, path: str, lineno: int, line: str):
        self.path = path
        self.lineno = lineno
        self.line = line
        super().__init__(f"{path}:{lineno}: malformed record {line!r}")


class UnsafeKeySourceError(AptlierError):
    """A key source was refused because it is not fetched securely."""


class KeyFetchError(AptlierError):
    """Key material could not be downloaded."""
