"""Introspection interface of a table store runtime.

A collector only ever talks to a runtime through the methods below. Any
of them may raise; callers decide how much of a failure to tolerate.
"""
from abc import ABC, abstractmethod
from typing import Any, Hashable, List, NamedTuple, Optional, Tuple

# key of a lock that covers the whole table rather than a single row
WHOLE_TABLE = "______WHOLETABLE_____"

READ, WRITE = "read", "write"


class HeldLock(NamedTuple):
    entity: str
    target: Hashable
    type: str
    owner: Any = None


class QueuedLock(NamedTuple):
    table: str
    key: Hashable
    type: str
    owner: Any = None
    since: float = 0.0


class Runtime(ABC):
    wordsize: int = 8

    @abstractmethod
    def is_running(self) -> bool: ...

    @abstractmethod
    def held_locks(self) -> List[HeldLock]: ...

    @abstractmethod
    def lock_queue(self) -> List[QueuedLock]: ...

    @abstractmethod
    def tm_info(self) -> Tuple[int, int]:
        """Return ``(participants, coordinators)`` of live transactions."""

    @abstractmethod
    def transaction_failures(self) -> int: ...

    @abstractmethod
    def transaction_commits(self) -> int: ...

    @abstractmethod
    def transaction_log_writes(self) -> int: ...

    @abstractmethod
    def transaction_restarts(self) -> int: ...

    @abstractmethod
    def tables(self) -> List[str]: ...

    @abstractmethod
    def table_info(self, table: str, item: str) -> Optional[int]:
        """Return ``item`` ("memory" in words, or "size" in rows) for ``table``.

        ``None`` means the table is known here but its replica has not been
        loaded yet.
        """


def is_introspectable(runtime) -> bool:
    return runtime is not None and callable(getattr(runtime, "is_running", None))
