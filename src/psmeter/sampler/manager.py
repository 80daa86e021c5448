"""Sampler manager that drives the stats engine on an interval."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..config import SamplerConfig
from ..metrics import Harvest, StatsEngine

logger = logging.getLogger(__name__)


class SamplerManager:
    """Polls a :class:`StatsEngine` on an interval and forwards each harvest.

    Instantiate it with a :class:`SamplerConfig` and an engine, register
    one or more sinks via :meth:`add_sink`, then call :meth:`start` /
    :meth:`stop`. *enabled* overrides ``config.enabled`` for hosts whose
    engine is fed by more than the samplers.
    """

    def __init__(self, config: SamplerConfig, engine: StatsEngine, enabled: bool | None = None) -> None:
        self._config = config
        self._enabled = config.enabled if enabled is None else enabled
        self._engine = engine
        self._sinks: list[Callable[[Harvest], None]] = []
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None

    def add_sink(self, sink: Callable[[Harvest], None]) -> None:
        """Register a callback to receive harvested data."""
        self._sinks.append(sink)

    def collect_once(self) -> Harvest:
        """Run one sampling pass and return everything harvested."""
        self._engine.sample_all()
        return self._engine.harvest()

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            harvest = self.collect_once()
            for sink in self._sinks:
                try:
                    sink(harvest)
                except Exception:
                    logger.exception("Sink failed")
            self._stop_event.wait(self._config.interval_seconds)

    def start(self) -> None:
        """Start sampling in the background."""
        if not self._enabled:
            return
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="psmeter-sampler", daemon=True)
        self._thread.start()
        logger.info("SamplerManager started (interval=%.1fs)", self._config.interval_seconds)

    def stop(self) -> None:
        """Stop background sampling."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("SamplerManager stopped")
