"""Collects table store metrics from the runtime's introspection interface.

Exported metrics (``<prefix>`` is ``METRICS_PREFIX``, ``tablestore_`` by default):

- ``<prefix>held_locks`` gauge: number of held locks.
- ``<prefix>lock_queue`` gauge: number of transactions waiting for a lock.
- ``<prefix>transaction_participants`` gauge: number of participant transactions.
- ``<prefix>transaction_coordinators`` gauge: number of coordinator transactions.
- ``<prefix>transaction_failures`` counter: number of failed (aborted) transactions.
- ``<prefix>transaction_commits`` counter: number of committed transactions.
- ``<prefix>transaction_log_writes`` counter: number of transactions logged.
- ``<prefix>transaction_restarts`` counter: total number of transaction restarts.
- ``<prefix>memory_usage_bytes`` gauge: bytes allocated by all tables.
- ``<prefix>tablewise_memory_usage_bytes`` gauge: bytes allocated per table.
- ``<prefix>tablewise_size`` gauge: rows per table.

Each scrape also bumps two counters, ``<prefix>held_locks_dist`` and
``<prefix>lock_queue_dist``, once per held/queued lock row seen.

The set of exported families is read from ``COLLECTOR_METRICS`` on every
scrape, ``all`` by default.
"""
import logging
from typing import Callable, List, Tuple

from prometheus_client import CollectorRegistry

from tablestore_exporter.collectors import distribution
from tablestore_exporter.collectors.base import Callback, Collector
from tablestore_exporter.collectors.model import COUNTER, GAUGE, create_mf
from tablestore_exporter.runtime.base import WHOLE_TABLE, is_introspectable
from tablestore_exporter.utils.config import ALL, get_config

logger = logging.getLogger(__name__)

HELD_LOCKS_DIST = "held_locks_dist"
LOCK_QUEUE_DIST = "lock_queue_dist"


def metric_enabled(key, enabled) -> bool:
    return enabled == ALL or key in enabled


def _catch_all(key, fn):
    try:
        return fn()
    except Exception:
        logger.debug("metric %s unavailable", key, exc_info=True)
        return None


class TableStoreCollector(Collector):
    def __init__(self, runtime, registry=None):
        super().__init__(registry)
        self.runtime = runtime

    def _running(self) -> bool:
        if not is_introspectable(self.runtime):
            return False
        return bool(_catch_all("is_running", self.runtime.is_running))

    def collect_mf(self, registry: CollectorRegistry, callback: Callback) -> None:
        if not self._running():
            return
        conf = get_config()
        enabled = conf.COLLECTOR_METRICS
        prefix = conf.METRICS_PREFIX
        distribution.declare(prefix + HELD_LOCKS_DIST,
                             "Held locks tablewise activity distribution.",
                             ["lock_entity", "target", "type"], registry)
        distribution.declare(prefix + LOCK_QUEUE_DIST,
                             "Lock queue tablewise activity distribution.",
                             ["table", "type"], registry)
        for key, kind, help, fn in self.metrics(enabled, prefix, registry):
            if metric_enabled(key, enabled):
                mf = _catch_all(key, lambda: create_mf(prefix + key, help, kind, fn()))
                if mf is None:
                    mf = create_mf(prefix + key, help, kind, None)
                callback(mf)

    def metrics(self, enabled, prefix: str, registry: CollectorRegistry) -> List[Tuple[str, str, str, Callable]]:
        rt = self.runtime
        participants, coordinators = self._tm_info(enabled)
        table_memory = None
        if metric_enabled("memory_usage_bytes", enabled) or \
                metric_enabled("tablewise_memory_usage_bytes", enabled):
            table_memory = _catch_all("table_memory", self.table_memory)

        held_locks = _catch_all("held_locks", rt.held_locks)
        if held_locks is not None:
            _catch_all(HELD_LOCKS_DIST, lambda: self._held_locks_dist(held_locks, prefix, registry))
        lock_queue = _catch_all("lock_queue", rt.lock_queue)
        if lock_queue is not None:
            _catch_all(LOCK_QUEUE_DIST, lambda: self._lock_queue_dist(lock_queue, prefix, registry))

        return [
            ("held_locks", GAUGE, "Number of held locks.",
             lambda: len(held_locks)),
            ("lock_queue", GAUGE, "Number of transactions waiting for a lock.",
             lambda: len(lock_queue)),
            ("transaction_participants", GAUGE, "Number of participant transactions.",
             lambda: participants),
            ("transaction_coordinators", GAUGE, "Number of coordinator transactions.",
             lambda: coordinators),
            ("transaction_failures", COUNTER, "Number of failed (i.e. aborted) transactions.",
             rt.transaction_failures),
            ("transaction_commits", COUNTER, "Number of committed transactions.",
             rt.transaction_commits),
            ("transaction_log_writes", COUNTER, "Number of transactions logged.",
             rt.transaction_log_writes),
            ("transaction_restarts", COUNTER, "Total number of transaction restarts.",
             rt.transaction_restarts),
            ("memory_usage_bytes", GAUGE, "Total number of bytes allocated by all tables.",
             lambda: self.memory_usage(table_memory)),
            ("tablewise_memory_usage_bytes", GAUGE, "Number of bytes allocated per table.",
             lambda: self.tablewise_memory_usage(table_memory)),
            ("tablewise_size", GAUGE, "Number of rows present per table.",
             self.tablewise_size),
        ]

    def _tm_info(self, enabled):
        if metric_enabled("transaction_participants", enabled) or \
                metric_enabled("transaction_coordinators", enabled):
            info = _catch_all("tm_info", self.runtime.tm_info)
            if info is not None:
                return info
        return None, None

    @staticmethod
    def _held_locks_dist(held_locks, prefix, registry):
        for lock in held_locks:
            target = "whole_table" if lock.target == WHOLE_TABLE else "single"
            distribution.inc(prefix + HELD_LOCKS_DIST, [lock.entity, target, lock.type], registry)

    @staticmethod
    def _lock_queue_dist(lock_queue, prefix, registry):
        for req in lock_queue:
            distribution.inc(prefix + LOCK_QUEUE_DIST, [req.table, req.type], registry)

    def table_info(self, table, item) -> int:
        # None while a table is registered but its local replica is not
        # loaded yet. Reported as 0 so the table keeps its series; the value
        # is briefly wrong until the load finishes.
        value = self.runtime.table_info(table, item)
        return 0 if value is None else value

    def table_memory(self):
        """Read every table's memory once, as bytes, so the total and the
        per-table samples come from the same snapshot."""
        wordsize = self.runtime.wordsize
        return [(t, self.table_info(t, "memory") * wordsize) for t in self.runtime.tables()]

    @staticmethod
    def memory_usage(table_memory) -> int:
        return sum(nbytes for _, nbytes in table_memory)

    @staticmethod
    def tablewise_memory_usage(table_memory):
        return [({"table": t}, nbytes) for t, nbytes in table_memory]

    def tablewise_size(self):
        return [({"table": t}, self.table_info(t, "size")) for t in self.runtime.tables()]
