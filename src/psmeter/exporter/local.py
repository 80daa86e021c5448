"""Local file exporter – writes harvested samples to JSONL files."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import IO

from ..config import LocalExporterConfig
from ..metrics import Harvest
from .base import BaseExporter

logger = logging.getLogger(__name__)


class LocalExporter(BaseExporter):
    """Writes metric samples and slow SQL traces to JSONL files on disk.

    One ``resources-<date>.jsonl`` and one ``sql-<date>.jsonl`` file per day
    are created inside the configured *output_dir*.
    """

    def __init__(self, config: LocalExporterConfig) -> None:
        self._config = config
        self._output_dir = Path(config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._handles: dict[str, IO[str]] = {}
        self._current_date: str | None = None
        logger.info("LocalExporter initialized → %s", self._output_dir)

    def _file(self, prefix: str) -> IO[str]:
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        if self._current_date != today:
            self._close_all()
            self._current_date = today
        fh = self._handles.get(prefix)
        if fh is None:
            filepath = self._output_dir / f"{prefix}-{today}.jsonl"
            fh = open(filepath, "a", encoding="utf-8")  # noqa: SIM115
            self._handles[prefix] = fh
        return fh

    def export(self, harvest: Harvest) -> None:
        if harvest.samples:
            fh = self._file("resources")
            for s in harvest.samples:
                fh.write(json.dumps(s.to_dict()) + "\n")
            fh.flush()
        if harvest.slow_sql:
            fh = self._file("sql")
            for trace in harvest.slow_sql:
                fh.write(json.dumps(trace.to_dict(), default=str) + "\n")
            fh.flush()

    def _close_all(self) -> None:
        for fh in self._handles.values():
            fh.close()
        self._handles.clear()

    def shutdown(self) -> None:
        self._close_all()
        logger.info("LocalExporter shut down")
