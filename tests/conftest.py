"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from tablestore_exporter.runtime.base import Runtime
from tablestore_exporter.utils.config import reload_config


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Start every test from the default config, whatever the environment holds."""
    for name in ("COLLECTOR_METRICS", "METRICS_PREFIX", "NODE_ID", "HTTP_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield reload_config()
    monkeypatch.undo()
    reload_config()


@pytest.fixture
def registry() -> CollectorRegistry:
    """Provide an isolated registry."""
    return CollectorRegistry()


@pytest.fixture
def make_runtime():
    """Fixture factory for a fake runtime.

    ``tables`` maps a table name to ``(memory_words, rows)``; either may be
    ``None`` to mimic a table that is not loaded yet.
    """

    def _make(held_locks=(), lock_queue=(), tm_info=(1, 2), failures=3, commits=4,
              log_writes=5, restarts=6, tables=None, wordsize=8, running=True):
        tables = dict(tables or {})
        rt = MagicMock(spec=Runtime)
        rt.is_running.return_value = running
        rt.held_locks.return_value = list(held_locks)
        rt.lock_queue.return_value = list(lock_queue)
        rt.tm_info.return_value = tm_info
        rt.transaction_failures.return_value = failures
        rt.transaction_commits.return_value = commits
        rt.transaction_log_writes.return_value = log_writes
        rt.transaction_restarts.return_value = restarts
        rt.tables.return_value = list(tables)
        rt.table_info.side_effect = lambda t, item: tables[t][0 if item == "memory" else 1]
        rt.wordsize = wordsize
        return rt

    return _make


@pytest.fixture
def scrape():
    """Run one collection pass and index the emitted families by name."""

    def _scrape(collector, registry):
        families = []
        collector.collect_mf(registry, families.append)
        return {mf.name: mf for mf in families}

    return _scrape
