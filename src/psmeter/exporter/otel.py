"""OpenTelemetry exporter – hands harvested samples to the OTel SDK."""

from __future__ import annotations

import logging
import re
from typing import Any

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..config import OtelExporterConfig
from ..metrics import Harvest
from .base import BaseExporter

logger = logging.getLogger(__name__)

_INVALID = re.compile(r"[^A-Za-z0-9_.\-/]")


def instrument_name(metric_name: str) -> str:
    """Map a metric name like ``Memory/Physical`` to ``psmeter.memory.physical``."""
    cleaned = _INVALID.sub("_", metric_name).replace("/", ".").lower()
    return f"psmeter.{cleaned}"


class OtelExporter(BaseExporter):
    """Records harvested samples as OpenTelemetry gauges.

    The SDK's metric reader owns delivery; by default a
    ``PeriodicExportingMetricReader`` pushes to the configured OTLP/HTTP
    endpoint. Pass *reader* to substitute another reader.

    Slow SQL traces are not sent; only :class:`~psmeter.exporter.local.LocalExporter`
    writes them.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        if reader is None:
            exporter_kwargs: dict[str, Any] = {
                "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
            }
            if config.headers:
                exporter_kwargs["headers"] = config.headers
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),
                export_interval_millis=config.export_interval_ms,
            )
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter("psmeter")
        self._gauges: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}
        self._slow_sql_noted = False

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def _get_gauge(self, name: str, unit: str) -> Any:
        if name not in self._gauges:
            self._gauges[name] = self._meter.create_gauge(name=name, unit=unit)
        return self._gauges[name]

    def _get_histogram(self, name: str, unit: str) -> Any:
        if name not in self._histograms:
            self._histograms[name] = self._meter.create_histogram(name=name, unit=unit)
        return self._histograms[name]

    def export(self, harvest: Harvest) -> None:
        if harvest.slow_sql and not self._slow_sql_noted:
            logger.debug("OtelExporter skips slow SQL traces; LocalExporter writes them")
            self._slow_sql_noted = True
        for s in harvest.samples:
            name = instrument_name(s.name)
            # durations are distributions, sampled readings are point-in-time values
            if s.unit == "s":
                self._get_histogram(name, s.unit).record(s.value, attributes=s.labels)
            else:
                self._get_gauge(name, s.unit).set(s.value, attributes=s.labels)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")

