"""Prometheus collector for an in-memory replicated table store."""

__version__ = "0.1.0"
