"""In-process metrics sink.

The :class:`StatsEngine` is what samplers and instrumentation write into.
It only buffers: each :meth:`StatsEngine.harvest` hands over everything
recorded since the previous one, unaggregated.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .sampler.base import MetricSample

logger = logging.getLogger(__name__)

_LITERALS = re.compile(
    r"'(?:[^']|'')*'"  # single-quoted strings
    r"|\b\d+(?:\.\d+)?\b"  # numbers
)


def obfuscate_sql(sql: str) -> str:
    """Replace string and numeric literals in *sql* with ``?``."""
    return _LITERALS.sub("?", sql)


class SampledMetric:
    """Recorder handed to a sampler callback for one tick."""

    def __init__(self, name: str, unit: str = "1", labels: dict[str, str] | None = None) -> None:
        self.name = name
        self.unit = unit
        self.labels = labels or {}
        self.samples: list[MetricSample] = []

    def record_data_point(self, value: float) -> None:
        self.samples.append(MetricSample(
            name=self.name,
            value=float(value),
            unit=self.unit,
            timestamp=time.time(),
            labels=dict(self.labels),
        ))


@dataclass
class SlowSqlTrace:
    """A statement that ran longer than the slow threshold."""

    sql: str
    metric: str
    duration: float
    timestamp: float
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "metric": self.metric,
            "duration": self.duration,
            "timestamp": self.timestamp,
            "params": self.params,
        }


@dataclass
class Harvest:
    """Everything recorded between two harvests."""

    samples: list[MetricSample] = field(default_factory=list)
    slow_sql: list[SlowSqlTrace] = field(default_factory=list)


class StatsEngine:
    """Registry of sampled metrics plus a buffer of recorded data.

    Sampled metrics are polled by :meth:`sample_all`; a callback that raises
    is logged and skipped so one broken sampler cannot stop the others.
    """

    def __init__(self, slow_sql_threshold: float = 0.5, max_slow_sql: int = 10) -> None:
        self.slow_sql_threshold = slow_sql_threshold
        self.max_slow_sql = max_slow_sql
        self._sampled: dict[str, tuple[Callable[[SampledMetric], None], str]] = {}
        self._samples: list[MetricSample] = []
        self._slow_sql: list[SlowSqlTrace] = []
        self._lock = threading.Lock()

    @property
    def sampled_metric_names(self) -> list[str]:
        return list(self._sampled)

    def add_sampled_metric(
        self,
        name: str,
        callback: Callable[[SampledMetric], None],
        unit: str = "1",
    ) -> None:
        """Register *callback* to be polled under *name* on every tick."""
        if name in self._sampled:
            raise ValueError(f"Sampled metric already registered: {name}")
        self._sampled[name] = (callback, unit)
        logger.debug("Registered sampled metric %s", name)

    def sample_all(self) -> list[MetricSample]:
        """Poll every sampled metric once and buffer the results."""
        taken: list[MetricSample] = []
        for name, (callback, unit) in list(self._sampled.items()):
            stats = SampledMetric(name, unit=unit)
            try:
                callback(stats)
            except Exception:
                logger.exception("Sampled metric %s failed", name)
                continue
            taken.extend(stats.samples)
        with self._lock:
            self._samples.extend(taken)
        return taken

    def record_time_metric(self, name: str, duration: float, labels: dict[str, str] | None = None) -> None:
        """Buffer a duration in seconds."""
        sample = MetricSample(
            name=name,
            value=duration,
            unit="s",
            timestamp=time.time(),
            labels=labels or {},
        )
        with self._lock:
            self._samples.append(sample)

    def notice_sql(self, sql: str, metric: str, duration: float, params: dict[str, Any] | None = None) -> None:
        """Record the timing of one SQL statement; keep it if it was slow."""
        self.record_time_metric(metric, duration)
        if duration < self.slow_sql_threshold:
            return
        trace = SlowSqlTrace(
            sql=obfuscate_sql(sql),
            metric=metric,
            duration=duration,
            timestamp=time.time(),
            params=params or {},
        )
        with self._lock:
            self._slow_sql.append(trace)
            if len(self._slow_sql) > self.max_slow_sql:
                self._slow_sql.sort(key=lambda t: t.duration, reverse=True)
                del self._slow_sql[self.max_slow_sql:]

    def harvest(self) -> Harvest:
        """Return and clear everything buffered since the last harvest."""
        with self._lock:
            result = Harvest(samples=self._samples, slow_sql=self._slow_sql)
            self._samples = []
            self._slow_sql = []
        return result
