"""Platform detection and the process-status command table."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Callable

from ..errors import ConfigurationError


@dataclass(frozen=True)
class PlatformProfile:
    """Operating system family, lower case (``linux``, ``darwin``, ...)."""

    family: str


@dataclass(frozen=True)
class CommandTemplate:
    """A ``ps`` invocation and where its output holds the resident size.

    The value is read from line *line_index*, whitespace field *field_index*,
    and divided by *divisor* (``ps`` reports KiB; the metric is MiB).
    """

    command: str
    line_index: int = 1
    field_index: int = 0
    divisor: float = 1024.0

    def render(self, pid: int) -> str:
        return f"{self.command} {pid}"

    def parse(self, output: str) -> float:
        """Extract the measurement from *output*; unreadable output gives ``0.0``."""
        try:
            token = output.split("\n")[self.line_index].split()[self.field_index]
            return float(token) / self.divisor
        except (IndexError, ValueError):
            return 0.0


# Matched in order against the platform family.
COMMAND_TABLE: list[tuple[re.Pattern[str], CommandTemplate]] = [
    (re.compile(r"darwin|linux"), CommandTemplate("ps -o rsz")),
    (re.compile(r"freebsd"), CommandTemplate("ps -o rss")),
    (re.compile(r"solaris|sunos"), CommandTemplate("ps -o rss -p")),
]


def detect_platform(
    run: Callable[[str], str] | None = None,
    platform: str | None = None,
) -> PlatformProfile:
    """Return the :class:`PlatformProfile` of the running interpreter.

    On JVM-hosted interpreters ``sys.platform`` names the JVM rather than the
    OS, so ``uname -s`` is asked instead.
    """
    platform = (platform if platform is not None else sys.platform).lower()
    if platform.startswith("java"):
        if run is None:
            from .command import ShellCommandRunner

            run = ShellCommandRunner()
        platform = run("uname -s").strip().lower()
    return PlatformProfile(family=platform)


def resolve_template(profile: PlatformProfile) -> CommandTemplate:
    """Select the command for *profile* or raise :class:`ConfigurationError`."""
    for pattern, template in COMMAND_TABLE:
        if pattern.search(profile.family):
            return template
    raise ConfigurationError(f"Unsupported platform for getting memory: {profile.family}")
