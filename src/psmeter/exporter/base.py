"""Base interface for data exporters."""

from __future__ import annotations

import abc

from ..metrics import Harvest


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive harvested data."""

    @abc.abstractmethod
    def export(self, harvest: Harvest) -> None:
        """Export one harvest."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
