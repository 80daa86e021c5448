"""Resident memory sampler backed by the OS ``ps`` command."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import CommandTimeoutError, ResourceExhaustedError
from .base import BaseSampler
from .command import CommandRunner, ShellCommandRunner
from .platform import CommandTemplate, PlatformProfile, detect_platform, resolve_template

if TYPE_CHECKING:
    from ..metrics import SampledMetric, StatsEngine

logger = logging.getLogger(__name__)


@dataclass
class SamplerState:
    template: CommandTemplate
    disabled: bool = False


class MemorySampler(BaseSampler):
    """Records the resident set size of this process, in MiB.

    Each tick runs the platform's ``ps`` command for the current pid. A
    reading that is zero, negative or unparseable disables the sampler for
    the rest of its life; build a new instance to sample again. Running out
    of memory while spawning the command only skips the tick. Other errors
    propagate to the engine.

    Raises :class:`~psmeter.errors.ConfigurationError` when the platform has
    no known command.
    """

    unit = "MiB"

    def __init__(
        self,
        engine: StatsEngine,
        *,
        runner: CommandRunner | None = None,
        profile: PlatformProfile | None = None,
        pid: int | None = None,
        metric_name: str = "Memory/Physical",
    ) -> None:
        self._run = runner or ShellCommandRunner()
        self.profile = profile or detect_platform(self._run)
        self._state = SamplerState(template=resolve_template(self.profile))
        self._pid = pid if pid is not None else os.getpid()
        self._lock = threading.Lock()
        super().__init__(engine, metric_name)

    @property
    def disabled(self) -> bool:
        return self._state.disabled

    @property
    def command(self) -> str:
        return self._state.template.render(self._pid)

    def sample(self, stats: SampledMetric) -> None:
        with self._lock:
            if self._state.disabled:
                return
            command = self.command
            try:
                output = self._run(command)
            except ResourceExhaustedError:
                logger.error("Got OOM trying to determine process memory usage")
                return
            except CommandTimeoutError as exc:
                logger.error("Timed out after %.1fs determining resident memory. Disabling this metric.", exc.timeout)
                logger.error("Faulty command: `%s`", command)
                self._state.disabled = True
                return

            memory = self._state.template.parse(output)
            if memory > 0:
                stats.record_data_point(memory)
                return

            logger.error(
                "Error attempting to determine resident memory (got result of %s). Disabling this metric.",
                memory,
            )
            logger.error("Faulty command: `%s`", command)
            self._state.disabled = True
