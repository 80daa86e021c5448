"""SQLAlchemy statement timing.

Attach to an engine with :func:`instrument_engine`; every statement that
goes through its cursors is timed and reported to a
:class:`~psmeter.metrics.StatsEngine` under a ``Database/...`` metric.
Statements slower than the stats engine's threshold are kept as slow SQL
traces. Failed statements are timed too; the driver error still propagates.
"""

from __future__ import annotations

import logging
import re
import time
import weakref
from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.engine import Engine

from ..metrics import StatsEngine

logger = logging.getLogger(__name__)

_INFO_KEY = "psmeter_query_start_time"

_LEADING_COMMENTS = re.compile(r"^\s*(?:/\*.*?\*/\s*|--[^\n]*\n\s*)*", re.DOTALL)
_IDENT = r"[`\"\[]?([\w.]+)[`\"\]]?"
_TABLE_PATTERNS = {
    "select": re.compile(r"\bfrom\s+" + _IDENT, re.IGNORECASE),
    "delete": re.compile(r"\bfrom\s+" + _IDENT, re.IGNORECASE),
    "insert": re.compile(r"\binto\s+" + _IDENT, re.IGNORECASE),
    "update": re.compile(r"^\s*update\s+" + _IDENT, re.IGNORECASE),
}

# engine -> registered (event name, listener) pairs; entries go with the engine
_instrumented: weakref.WeakKeyDictionary[Engine, list[tuple[str, Callable[..., Any]]]] = (
    weakref.WeakKeyDictionary()
)


def metric_for_sql(sql: str) -> str:
    """Derive a metric name from a SQL statement.

    ``SELECT * FROM users`` gives ``Database/users/select``; statements whose
    table cannot be found give ``Database/<keyword>``.
    """
    body = _LEADING_COMMENTS.sub("", sql or "", count=1)
    match = re.match(r"\s*(\w+)", body)
    if match is None:
        return "Database/other"
    operation = match.group(1).lower()
    pattern = _TABLE_PATTERNS.get(operation)
    if pattern is not None:
        table = pattern.search(body)
        if table is not None:
            return f"Database/{table.group(1).lower()}/{operation}"
    return f"Database/{operation}"


def _notice(stats_engine: StatsEngine, conn: Any, statement: str) -> None:
    starts = conn.info.get(_INFO_KEY)
    if not starts:
        return
    duration = time.perf_counter() - starts.pop()
    try:
        stats_engine.notice_sql(statement, metric_for_sql(statement), duration)
    except Exception:
        logger.debug("while recording metrics for SQLAlchemy", exc_info=True)


def instrument_engine(db_engine: Engine, stats_engine: StatsEngine) -> None:
    """Time every statement executed through *db_engine*."""
    if db_engine in _instrumented:
        logger.debug("Engine %r already instrumented", db_engine)
        return

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault(_INFO_KEY, []).append(time.perf_counter())

    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        _notice(stats_engine, conn, statement)

    def handle_error(exception_context):
        conn = exception_context.connection
        if conn is not None:
            _notice(stats_engine, conn, exception_context.statement or "")

    listeners = [
        ("before_cursor_execute", before_cursor_execute),
        ("after_cursor_execute", after_cursor_execute),
        ("handle_error", handle_error),
    ]
    for name, fn in listeners:
        event.listen(db_engine, name, fn)
    _instrumented[db_engine] = listeners
    logger.debug("Instrumented SQLAlchemy engine %r", db_engine)


def uninstrument_engine(db_engine: Engine) -> None:
    """Remove listeners added by :func:`instrument_engine`."""
    listeners = _instrumented.pop(db_engine, None)
    if not listeners:
        return
    for name, fn in listeners:
        event.remove(db_engine, name, fn)
