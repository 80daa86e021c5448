"""Running external commands, with out-of-memory and timeout classification."""

from __future__ import annotations

import errno
import logging
import subprocess
from typing import Callable

from ..errors import CommandTimeoutError, ResourceExhaustedError

logger = logging.getLogger(__name__)

# Takes a shell command line, returns its captured standard output.
CommandRunner = Callable[[str], str]


class ShellCommandRunner:
    """Runs a command line through the shell and returns its stdout.

    Failures to spawn for lack of memory become
    :class:`ResourceExhaustedError` and an expired *timeout* becomes
    :class:`CommandTimeoutError`; any other error propagates as raised.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout or None

    def __call__(self, command: str) -> str:
        logger.debug("Running %r", command)
        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except MemoryError as exc:
            raise ResourceExhaustedError(f"Out of memory running {command!r}") from exc
        except OSError as exc:
            if exc.errno == errno.ENOMEM:
                raise ResourceExhaustedError(f"Out of memory running {command!r}") from exc
            raise
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeoutError(command, exc.timeout) from exc
        return result.stdout
