"""Blocking invocation of external tools.

Every aptly and gpg call goes through a :class:`CommandRunner`. The runner
layers a small environment override (``GNUPGHOME``) on top of the ambient
environment and turns any failure to run a command, including a non-zero
exit status, into :class:`CommandError`.
"""

import os
import shlex
import subprocess
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .errors import CommandError
from .logger import get_logger

logger = get_logger("command")

# Shell conventions for "command not found" and "cannot execute"
NOT_FOUND_STATUS = 127
NOT_EXECUTABLE_STATUS = 126


class CommandRunner:
    """Runs child processes one at a time with an isolated environment."""

    def __init__(
        self,
        environment: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        setup: Optional[Callable[[], object]] = None,
    ):
        """Initialize the runner.

        Args:
            environment: Variables overriding the ambient environment
            timeout: Optional timeout in seconds for every command
            setup: Called once before the first command is started
        """
        self.environment: Dict[str, str] = dict(environment or {})
        self.timeout = timeout
        self._setup = setup

    def child_environment(self) -> Dict[str, str]:
        """Return the full environment passed to child processes."""
        env = dict(os.environ)
        env.update(self.environment)
        return env

    def run(self, args: Sequence[str]) -> None:
        """Run a command, letting its output go to the terminal.

        Raises:
            CommandError: If the command cannot be started, times out or
                exits with a non-zero status
        """
        cmd = list(args)
        logger.info(f"+ {shlex.join(cmd)}")
        result = self._execute(cmd)
        if result.returncode != 0:
            raise CommandError(cmd, result.returncode)

    def capture(self, args: Sequence[str]) -> str:
        """Run a command and return its standard output.

        Raises:
            CommandError: If the command cannot be started, times out or
                exits with a non-zero status
        """
        cmd = list(args)
        logger.info(f"< {shlex.join(cmd)}")
        result = self._execute(cmd, capture_output=True)
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace") if result.stderr else None
            raise CommandError(cmd, result.returncode, stderr)
        return result.stdout.decode()

    def capture_lines(self, args: Sequence[str]) -> List[str]:
        """Run a command and return its non-empty, stripped output lines."""
        output = self.capture(args)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _execute(self, cmd: List[str], **kwargs) -> subprocess.CompletedProcess:
        if self._setup is not None:
            self._setup()
            self._setup = None

        try:
            return subprocess.run(
                cmd,
                env=self.child_environment(),
                timeout=self.timeout,
                check=False,
                **kwargs,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(cmd, None, reason=f"timed out after {e.timeout} seconds") from e
        except OSError as e:
            status = NOT_FOUND_STATUS if isinstance(e, FileNotFoundError) else NOT_EXECUTABLE_STATUS
            raise CommandError(cmd, status, reason=e.strerror or str(e)) from e
