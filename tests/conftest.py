"""Shared fixtures for the fitmerge test suite."""
import pytest

from fitmerge.config import reset_config
from fitmerge.processing.samples import Sample, Source
from fitmerge.processing.metrics import MetricKind


T0 = 1_700_000_000_000  # arbitrary epoch ms origin


def make_source(name, rows, reported=None):
    """Build a Source from (seconds offset, {metric_name: value}) rows."""
    samples = [
        Sample(
            timestamp=T0 + int(offset * 1000),
            metrics={MetricKind(k): float(v) for k, v in values.items()},
        )
        for offset, values in rows
    ]
    return Source(name=name, samples=samples, reported_metrics=reported)


@pytest.fixture
def t0():
    return T0


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Keep FITMERGE_* variables from the developer's shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("FITMERGE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def source_factory():
    return make_source
