import logging
import struct
import sys
import threading
import time
import uuid
from typing import Dict, List, Optional, Set, Tuple

from tablestore_exporter.runtime.base import (
    READ, WHOLE_TABLE, WRITE, HeldLock, QueuedLock, Runtime,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass

class NoSuchTable(StoreError):
    pass

class TableNotLoaded(StoreError):
    pass

class NoSuchTransaction(StoreError):
    pass

class LockNotHeld(StoreError):
    pass


def _overlaps(k1, k2):
    return k1 == k2 or k1 == WHOLE_TABLE or k2 == WHOLE_TABLE


class TableStore(Runtime):
    """In-memory table store with a lock table and a transaction manager.

    Locks are keyed by ``(table, key)``; ``key`` may be ``WHOLE_TABLE``,
    which overlaps every row of the table. Read locks are shared, write
    locks exclusive. Requests that cannot be granted wait in a single
    FIFO queue and are granted in order on release.
    """

    wordsize = struct.calcsize("P")

    def __init__(self):
        self._mu = threading.RLock()
        self._running = False
        self._tables: Dict[str, Optional[dict]] = {}  # None -> registered, not loaded
        self._locks: Dict[Tuple[str, object], dict] = {}  # (table,key) -> {"type", "holders"}
        self._queue: List[QueuedLock] = []
        self._coordinators: Set[str] = set()
        self._participants: Set[str] = set()
        self._dirty: Set[str] = set()
        self._failures = 0
        self._commits = 0
        self._log_writes = 0
        self._restarts = 0

    # lifecycle

    def start(self):
        with self._mu:
            self._running = True
        logger.info("table store started")

    def stop(self):
        with self._mu:
            self._running = False
        logger.info("table store stopped")

    def is_running(self) -> bool:
        return self._running

    # tables

    def create_table(self, name: str, load: bool = True):
        with self._mu:
            if name not in self._tables:
                self._tables[name] = {} if load else None

    def load_table(self, name: str):
        with self._mu:
            if name not in self._tables:
                raise NoSuchTable(name)
            if self._tables[name] is None:
                self._tables[name] = {}

    def _rows(self, table):
        if table not in self._tables:
            raise NoSuchTable(table)
        rows = self._tables[table]
        if rows is None:
            raise TableNotLoaded(table)
        return rows

    def write(self, table: str, key, value, tid: Optional[str] = None):
        with self._mu:
            rows = self._rows(table)
            if tid is not None:
                self._tx(tid)
                self._dirty.add(tid)
            rows[key] = value

    def read(self, table: str, key, default=None):
        with self._mu:
            return self._rows(table).get(key, default)

    def delete(self, table: str, key, tid: Optional[str] = None):
        with self._mu:
            rows = self._rows(table)
            if tid is not None:
                self._tx(tid)
                self._dirty.add(tid)
            rows.pop(key, None)

    # locks

    def _grantable(self, table, key, type_, owner):
        for (t, k), st in self._locks.items():
            if t != table or not _overlaps(k, key):
                continue
            others = st["holders"] - {owner}
            if others and (type_ == WRITE or st["type"] == WRITE):
                return False
        return True

    def _grant(self, table, key, type_, owner):
        st = self._locks.setdefault((table, key), {"type": type_, "holders": set()})
        if type_ == WRITE:
            st["type"] = WRITE
        st["holders"].add(owner)

    def acquire(self, table: str, key, type_: str, owner) -> bool:
        """Grant the lock or queue the request. Returns True when granted."""
        if type_ not in (READ, WRITE):
            raise ValueError(f"unknown lock type {type_!r}")
        with self._mu:
            if table not in self._tables:
                raise NoSuchTable(table)
            st = self._locks.get((table, key))
            if st and owner in st["holders"] and (st["type"] == WRITE or type_ == READ):
                return True
            # a queued request keeps its turn
            if not any(q.table == table for q in self._queue) and self._grantable(table, key, type_, owner):
                self._grant(table, key, type_, owner)
                return True
            self._queue.append(QueuedLock(table, key, type_, owner, time.time()))
            queued_owners = [q.owner for q in self._queue if q.table == table and q.key == key]
            if len(queued_owners) != len(set(queued_owners)):
                logger.warning("possible deadlock on %s/%r involving %s", table, key, queued_owners)
            return False

    def release(self, table: str, key, owner):
        with self._mu:
            st = self._locks.get((table, key))
            if not st or owner not in st["holders"]:
                raise LockNotHeld(f"{owner!r} holds no lock on {table}/{key!r}")
            st["holders"].discard(owner)
            if not st["holders"]:
                del self._locks[(table, key)]
            self._wake()

    def release_all(self, owner):
        with self._mu:
            for lk in [lk for lk, st in self._locks.items() if owner in st["holders"]]:
                st = self._locks[lk]
                st["holders"].discard(owner)
                if not st["holders"]:
                    del self._locks[lk]
            self._queue = [q for q in self._queue if q.owner != owner]
            self._wake()

    def _wake(self):
        blocked = set()
        waiting = []
        for q in self._queue:
            if q.table not in blocked and self._grantable(q.table, q.key, q.type, q.owner):
                self._grant(q.table, q.key, q.type, q.owner)
            else:
                blocked.add(q.table)
                waiting.append(q)
        self._queue = waiting

    # transactions

    def _tx(self, tid):
        if tid not in self._coordinators and tid not in self._participants:
            raise NoSuchTransaction(tid)

    def begin(self, tid: Optional[str] = None, coordinator: bool = True) -> str:
        """Register a live transaction; ``coordinator=False`` joins as participant."""
        tid = tid or uuid.uuid4().hex
        with self._mu:
            (self._coordinators if coordinator else self._participants).add(tid)
        return tid

    def _finish(self, tid):
        self._tx(tid)
        self._coordinators.discard(tid)
        self._participants.discard(tid)
        self.release_all(tid)
        dirty = tid in self._dirty
        self._dirty.discard(tid)
        return dirty

    def commit(self, tid: str):
        with self._mu:
            dirty = self._finish(tid)
            self._commits += 1
            if dirty:
                self._log_writes += 1

    def abort(self, tid: str):
        with self._mu:
            self._finish(tid)
            self._failures += 1

    def restart(self, tid: str):
        with self._mu:
            self._tx(tid)
            self.release_all(tid)
            self._dirty.discard(tid)
            self._restarts += 1

    # introspection

    def held_locks(self) -> List[HeldLock]:
        with self._mu:
            return [HeldLock(t, k, st["type"], o)
                    for (t, k), st in self._locks.items() for o in sorted(st["holders"], key=repr)]

    def lock_queue(self) -> List[QueuedLock]:
        with self._mu:
            return list(self._queue)

    def tm_info(self) -> Tuple[int, int]:
        with self._mu:
            return len(self._participants), len(self._coordinators)

    def transaction_failures(self) -> int:
        return self._failures

    def transaction_commits(self) -> int:
        return self._commits

    def transaction_log_writes(self) -> int:
        return self._log_writes

    def transaction_restarts(self) -> int:
        return self._restarts

    def tables(self) -> List[str]:
        with self._mu:
            return list(self._tables)

    def table_info(self, table: str, item: str) -> Optional[int]:
        with self._mu:
            if table not in self._tables:
                raise NoSuchTable(table)
            rows = self._tables[table]
            if rows is None:
                return None
            if item == "size":
                return len(rows)
            if item == "memory":
                nbytes = sys.getsizeof(rows) + sum(sys.getsizeof(k) + sys.getsizeof(v) for k, v in rows.items())
                return -(-nbytes // self.wordsize)
            raise ValueError(f"unknown table item {item!r}")
