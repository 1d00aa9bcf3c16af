"""Tests for the metric family builder."""

import pytest

from tablestore_exporter.collectors.model import COUNTER, GAUGE, create_mf


class TestCreateMf:
    """Test suite for create_mf."""

    def test_scalar_gauge(self):
        """A scalar gives one unlabelled sample."""
        mf = create_mf("x", "Help.", GAUGE, 3)
        assert mf.type == "gauge"
        assert mf.documentation == "Help."
        assert [(s.name, s.labels, s.value) for s in mf.samples] == [("x", {}, 3)]

    def test_scalar_counter(self):
        """Counter samples carry the _total suffix."""
        mf = create_mf("x", "Help.", COUNTER, 2)
        assert mf.type == "counter"
        assert mf.name == "x"
        assert [(s.name, s.value) for s in mf.samples] == [("x_total", 2)]

    def test_none_has_no_samples(self):
        """An undefined value still builds the family."""
        mf = create_mf("x", "Help.", GAUGE, None)
        assert mf.name == "x"
        assert mf.samples == []

    def test_labelled_samples(self):
        """A list of (labels, value) gives one sample each, in order."""
        mf = create_mf("x", "Help.", GAUGE, [({"table": "a"}, 1), ({"table": "b"}, 2)])
        assert [(s.labels, s.value) for s in mf.samples] == [({"table": "a"}, 1), ({"table": "b"}, 2)]

    def test_label_values_stringified(self):
        """Label values become strings."""
        mf = create_mf("x", "Help.", GAUGE, [({"table": 7, "type": "read"}, 1)])
        assert mf.samples[0].labels == {"table": "7", "type": "read"}

    def test_empty_list(self):
        """An empty list builds a family without samples."""
        assert create_mf("x", "Help.", GAUGE, []).samples == []

    def test_input_not_mutated(self):
        """The sample list and label sets are left as they were."""
        labels = {"table": "a"}
        value = [(labels, 1)]
        create_mf("x", "Help.", GAUGE, value)
        assert value == [({"table": "a"}, 1)]
        assert value[0][0] is labels

    def test_deterministic(self):
        """Same input, same family."""
        value = [({"table": "a"}, 1)]
        assert create_mf("x", "H.", GAUGE, value) == create_mf("x", "H.", GAUGE, value)

    def test_unknown_kind(self):
        """Only counter and gauge are supported."""
        with pytest.raises(ValueError):
            create_mf("x", "Help.", "histogram", 1)
