"""Process-wide labelled counters rebuilt by increments during each scrape.

``declare`` is idempotent per registry: the first call registers a
``prometheus_client.Counter``, later calls with the same help text and
label names return that counter untouched. A different schema under the
same name is a configuration error and raises ``DeclarationConflict``.
"""
import logging
import threading
import weakref
from typing import Dict, Sequence

from prometheus_client import REGISTRY, CollectorRegistry, Counter

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_declared: "weakref.WeakKeyDictionary[CollectorRegistry, Dict[str, Counter]]" = weakref.WeakKeyDictionary()


class DeclarationConflict(ValueError):
    pass


def declare(name: str, documentation: str, labelnames: Sequence[str],
            registry: CollectorRegistry = REGISTRY) -> Counter:
    labelnames = tuple(labelnames)
    with _lock:
        counters = _declared.setdefault(registry, {})
        counter = counters.get(name)
        if counter is not None:
            if counter._labelnames != labelnames or counter._documentation != documentation:
                logger.error("counter %s already declared with labels %s", name, counter._labelnames)
                raise DeclarationConflict(
                    f"{name} already declared with labels {counter._labelnames}, not {labelnames}")
            if counter not in registry._collector_to_names:
                # unregistered behind our back; expose it again with its counts
                _register(registry, name, counter)
            return counter
        counter = Counter(name, documentation, labelnames, registry=None)
        _register(registry, name, counter)
        counters[name] = counter
        return counter


def _register(registry, name, counter):
    try:
        registry.register(counter)
    except ValueError as e:
        # name already taken by a collector we did not declare
        logger.error("cannot declare counter %s: %s", name, e)
        raise DeclarationConflict(str(e)) from e


def get(name: str, registry: CollectorRegistry = REGISTRY) -> Counter:
    with _lock:
        try:
            return _declared[registry][name]
        except KeyError:
            raise KeyError(f"counter {name} was never declared") from None


def inc(name: str, labelvalues: Sequence[object], registry: CollectorRegistry = REGISTRY, amount: float = 1):
    get(name, registry).labels(*[str(v) for v in labelvalues]).inc(amount)
