"""Base interface for periodic samplers."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..metrics import SampledMetric, StatsEngine


@dataclass
class MetricSample:
    """A single metric data point."""

    name: str
    value: float
    unit: str
    timestamp: float
    labels: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "timestamp": self.timestamp,
            "labels": self.labels,
        }


class BaseSampler(abc.ABC):
    """Abstract base class for samplers driven by a :class:`StatsEngine`.

    Subclasses register :meth:`sample` with the engine under
    :attr:`metric_name`; the engine calls it once per tick with a
    :class:`SampledMetric` recorder.
    """

    unit: str = "1"

    def __init__(self, engine: StatsEngine, metric_name: str) -> None:
        self.metric_name = metric_name
        engine.add_sampled_metric(metric_name, self.sample, unit=self.unit)

    @abc.abstractmethod
    def sample(self, stats: SampledMetric) -> None:
        """Take one measurement and record it on *stats*."""
