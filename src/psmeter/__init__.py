"""psmeter - periodic process-memory sampling and SQL timing for Python services."""

__version__ = "0.1.0"
