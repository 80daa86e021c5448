"""Exception types raised by psmeter."""

from __future__ import annotations


class PsmeterError(Exception):
    """Base class for psmeter errors."""


class ConfigurationError(PsmeterError):
    """The sampler cannot run in this environment (e.g. unsupported platform)."""


class ResourceExhaustedError(PsmeterError):
    """An external command could not be started because the system is out of memory."""


class CommandTimeoutError(PsmeterError):
    """An external command did not finish within its timeout."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"Command timed out after {timeout:.1f}s: {command}")
        self.command = command
        self.timeout = timeout
