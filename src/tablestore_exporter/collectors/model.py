from typing import Iterable, Mapping, Tuple, Union
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

COUNTER, GAUGE = "counter", "gauge"

_FAMILIES = {COUNTER: CounterMetricFamily, GAUGE: GaugeMetricFamily}

Sample = Tuple[Mapping[str, object], float]
Value = Union[None, int, float, Iterable[Sample]]

def create_mf(name: str, help: str, kind: str, value: Value):
    """Build one metric family from a scalar, a list of (labels, value) or None.

    ``None`` yields a family with no samples: the metric exists but had
    nothing to report this time.
    """
    try:
        family_cls = _FAMILIES[kind]
    except KeyError:
        raise ValueError(f"unknown metric kind {kind!r}") from None
    if value is None:
        return family_cls(name, help)
    if isinstance(value, (int, float)):
        return family_cls(name, help, value=value)
    samples = list(value)
    labelnames = list(samples[0][0]) if samples else []
    mf = family_cls(name, help, labels=labelnames)
    for labels, v in samples:
        mf.add_metric([str(labels[n]) for n in labelnames], v)
    return mf
