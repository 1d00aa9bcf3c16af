"""Tests for idempotent distribution counters."""

import pytest
from prometheus_client import CollectorRegistry, Counter

from tablestore_exporter.collectors import distribution
from tablestore_exporter.collectors.distribution import DeclarationConflict


class TestDeclare:
    """Declaring counters."""

    def test_declare_twice_returns_same_counter(self, registry):
        """Same schema returns the already registered counter."""
        first = distribution.declare("dist", "Help.", ["table", "type"], registry)
        second = distribution.declare("dist", "Help.", ("table", "type"), registry)
        assert first is second

    def test_redeclare_keeps_counts(self, registry):
        """Re-declaring does not reset accumulated values."""
        distribution.declare("dist", "Help.", ["table"], registry)
        distribution.inc("dist", ["t"], registry)
        distribution.inc("dist", ["t"], registry)
        distribution.declare("dist", "Help.", ["table"], registry)
        distribution.inc("dist", ["t"], registry)
        assert registry.get_sample_value("dist_total", {"table": "t"}) == 3

    def test_conflicting_labels(self, registry):
        """Different label names are rejected."""
        distribution.declare("dist", "Help.", ["table"], registry)
        with pytest.raises(DeclarationConflict):
            distribution.declare("dist", "Help.", ["table", "type"], registry)

    def test_conflicting_help(self, registry):
        """Different help text is rejected."""
        distribution.declare("dist", "Help.", ["table"], registry)
        with pytest.raises(DeclarationConflict):
            distribution.declare("dist", "Other help.", ["table"], registry)

    def test_name_taken_by_foreign_metric(self, registry):
        """A metric registered elsewhere under the name is a conflict."""
        Counter("dist", "Help.", ["table"], registry=registry)
        with pytest.raises(DeclarationConflict):
            distribution.declare("dist", "Help.", ["table"], registry)

    def test_redeclare_after_external_unregister(self, registry):
        """A counter dropped from the registry is exposed again with its counts."""
        counter = distribution.declare("dist", "Help.", ["table"], registry)
        distribution.inc("dist", ["t"], registry)
        registry.unregister(counter)
        assert registry.get_sample_value("dist_total", {"table": "t"}) is None

        again = distribution.declare("dist", "Help.", ["table"], registry)
        assert again is counter
        assert registry.get_sample_value("dist_total", {"table": "t"}) == 1
        distribution.inc("dist", ["t"], registry)
        assert registry.get_sample_value("dist_total", {"table": "t"}) == 2

    def test_conflict_is_a_value_error(self):
        """Callers catching ValueError see conflicts too."""
        assert issubclass(DeclarationConflict, ValueError)

    def test_registries_are_independent(self):
        """Each registry gets its own counter."""
        r1, r2 = CollectorRegistry(), CollectorRegistry()
        c1 = distribution.declare("dist", "Help.", ["table"], r1)
        c2 = distribution.declare("dist", "Help.", ["table"], r2)
        assert c1 is not c2
        distribution.inc("dist", ["t"], r1)
        assert r1.get_sample_value("dist_total", {"table": "t"}) == 1
        assert r2.get_sample_value("dist_total", {"table": "t"}) is None


class TestIncrement:
    """Incrementing counters."""

    def test_inc_undeclared(self, registry):
        """Incrementing before declaring raises KeyError."""
        with pytest.raises(KeyError):
            distribution.inc("nope", ["t"], registry)

    def test_label_values_stringified(self, registry):
        """Non-string label values are converted."""
        distribution.declare("dist", "Help.", ["table", "key"], registry)
        distribution.inc("dist", ["t", 42], registry)
        assert registry.get_sample_value("dist_total", {"table": "t", "key": "42"}) == 1

    def test_amount(self, registry):
        """inc accepts an amount."""
        distribution.declare("dist", "Help.", ["table"], registry)
        distribution.inc("dist", ["t"], registry, amount=5)
        assert registry.get_sample_value("dist_total", {"table": "t"}) == 5
