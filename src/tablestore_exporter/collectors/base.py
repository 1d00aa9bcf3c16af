"""Collector contract shared by every metric producer.

A collector implements ``collect_mf(registry, callback)`` and hands each
metric family it produces to ``callback``. ``prometheus_client`` drives
collectors through ``collect()``, which is adapted here.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.metrics_core import Metric

logger = logging.getLogger(__name__)

Callback = Callable[[Metric], None]


class Collector(ABC):
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY

    @abstractmethod
    def collect_mf(self, registry: CollectorRegistry, callback: Callback) -> None:
        ...

    def deregister_cleanup(self, registry: CollectorRegistry) -> None:
        """Drop per-registry state. Nothing to do unless a collector keeps some."""

    def collect(self) -> List[Metric]:
        families: List[Metric] = []
        self.collect_mf(self.registry, families.append)
        return families

    def describe(self) -> List[Metric]:
        # registering must not run a scrape
        return []


def register_collector(collector: Collector, registry: Optional[CollectorRegistry] = None) -> Collector:
    registry = registry if registry is not None else collector.registry
    collector.registry = registry
    registry.register(collector)
    logger.info("registered %s", type(collector).__name__)
    return collector


def unregister_collector(collector: Collector, registry: Optional[CollectorRegistry] = None) -> None:
    registry = registry if registry is not None else collector.registry
    registry.unregister(collector)
    collector.deregister_cleanup(registry)
    logger.info("unregistered %s", type(collector).__name__)
