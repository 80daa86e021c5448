"""Agent that wires the engine, samplers, exporters and scheduler together."""

from __future__ import annotations

import logging
from typing import Any

from .config import PsmeterConfig
from .errors import ConfigurationError
from .exporter.base import BaseExporter
from .metrics import Harvest, StatsEngine
from .sampler.command import CommandRunner, ShellCommandRunner
from .sampler.manager import SamplerManager
from .sampler.memory import MemorySampler

logger = logging.getLogger(__name__)


class Agent:
    """Owns one :class:`StatsEngine` and everything that feeds or drains it.

    Exporters are built from *config* unless *exporters* is given. The memory
    sampler is skipped, with an error logged, on platforms without a known
    ``ps`` command.
    """

    def __init__(
        self,
        config: PsmeterConfig,
        *,
        runner: CommandRunner | None = None,
        exporters: list[BaseExporter] | None = None,
    ) -> None:
        self.config = config
        self.engine = StatsEngine(
            slow_sql_threshold=config.sql.slow_threshold_seconds,
            max_slow_sql=config.sql.max_slow_sql,
        )
        self.memory_sampler: MemorySampler | None = None
        if config.sampler.enabled:
            runner = runner or ShellCommandRunner(timeout=config.sampler.command_timeout_seconds)
            try:
                self.memory_sampler = MemorySampler(
                    self.engine,
                    runner=runner,
                    metric_name=config.sampler.metric_name,
                )
            except ConfigurationError as exc:
                logger.error("Memory sampler not started: %s", exc)

        self.exporters = exporters if exporters is not None else self._build_exporters()
        # SQL timing feeds the engine too, so harvest whenever either is on
        self.manager = SamplerManager(
            config.sampler,
            self.engine,
            enabled=config.sampler.enabled or config.sql.enabled,
        )
        for exp in self.exporters:
            self.manager.add_sink(exp.export)

    def _build_exporters(self) -> list[BaseExporter]:
        exporters: list[BaseExporter] = []
        if self.config.local_exporter.enabled:
            from .exporter.local import LocalExporter

            exporters.append(LocalExporter(self.config.local_exporter))
        if self.config.mode == "online":
            from .exporter.otel import OtelExporter

            exporters.append(OtelExporter(self.config.otel))
        return exporters

    def instrument_sqlalchemy(self, db_engine: Any) -> None:
        """Time statements run through a SQLAlchemy engine, if SQL timing is enabled."""
        if not self.config.sql.enabled:
            return
        from .instrumentation.sql import instrument_engine

        instrument_engine(db_engine, self.engine)

    def collect_once(self) -> Harvest:
        return self.manager.collect_once()

    def start(self) -> None:
        self.manager.start()

    def shutdown(self) -> None:
        self.manager.stop()
        # flush whatever was recorded after the last tick
        harvest = self.engine.harvest()
        for exp in self.exporters:
            if harvest.samples or harvest.slow_sql:
                try:
                    exp.export(harvest)
                except Exception:
                    logger.exception("Final export failed")
            exp.shutdown()
