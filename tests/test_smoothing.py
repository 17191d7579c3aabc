"""Tests for the smoothing filters."""
import pytest

from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.smoothing import (
    EXPONENTIAL,
    MEDIAN,
    MOVING_AVERAGE,
    Smoother,
    SmoothingOptions,
    default_options,
    smooth_values,
)


class TestMovingAverage:
    def test_centred_window_shrinks_at_edges(self):
        result = smooth_values([1, 2, 3, 4, 5], method=MOVING_AVERAGE, window_size=3)
        assert result == pytest.approx([1.5, 2.0, 3.0, 4.0, 4.5])

    def test_wider_window(self):
        result = smooth_values([0, 0, 10, 0, 0], method=MOVING_AVERAGE, window_size=5)
        assert result == pytest.approx([10 / 3, 2.5, 2.0, 2.5, 10 / 3])


class TestMedianFilter:
    def test_removes_short_spike(self):
        assert smooth_values([5, 5, 100, 5, 5], method=MEDIAN, window_size=3) == [5, 5, 5, 5, 5]

    def test_edge_windows_use_true_median(self):
        result = smooth_values([1, 100, 3, 4, 5], method=MEDIAN, window_size=3)
        assert result == pytest.approx([50.5, 3.0, 4.0, 4.0, 4.5])


class TestExponential:
    def test_recurrence(self):
        result = smooth_values([10, 20, 30], method=EXPONENTIAL, window_size=3)
        assert result == pytest.approx([10.0, 13.0, 18.1])

    def test_custom_alpha(self):
        result = smooth_values([0, 10], method=EXPONENTIAL, window_size=1, alpha=1.0)
        assert result == [0.0, 10.0]


class TestSmoother:
    def test_short_input_returned_unchanged(self):
        values = [100.0, 140.0]
        assert Smoother().smooth_metric(values, MetricKind.HEART_RATE) == values

    def test_output_same_length(self):
        values = [float(v) for v in range(20)]
        for kind in MetricKind:
            assert len(Smoother().smooth_metric(values, kind)) == len(values)

    def test_defaults_from_metric_table(self):
        assert default_options(MetricKind.HEART_RATE) == SmoothingOptions(MOVING_AVERAGE, 7)
        assert default_options(MetricKind.SPEED) == SmoothingOptions(MEDIAN, 5)
        assert default_options(MetricKind.POWER) == SmoothingOptions(MOVING_AVERAGE, 3)
        assert default_options(MetricKind.CADENCE) == SmoothingOptions(MOVING_AVERAGE, 5)
        assert default_options(MetricKind.ALTITUDE) == SmoothingOptions(MOVING_AVERAGE, 9)

    def test_per_metric_override(self):
        smoother = Smoother({MetricKind.HEART_RATE: SmoothingOptions(MEDIAN, 3)})
        assert smoother.options[MetricKind.HEART_RATE].method == MEDIAN
        assert smoother.options[MetricKind.SPEED] == default_options(MetricKind.SPEED)
        assert smoother.smooth_metric([120, 121, 180, 122, 123], MetricKind.HEART_RATE) == [
            120.5, 121.0, 122.0, 123.0, 122.5
        ]


class TestSmoothingOptions:
    @pytest.mark.parametrize("kwargs", [
        {"method": "wavelet"},
        {"window_size": 0},
        {"alpha": 0.0},
        {"alpha": 1.5},
    ])
    def test_invalid_options_raise(self, kwargs):
        with pytest.raises(ValueError):
            SmoothingOptions(**kwargs)
