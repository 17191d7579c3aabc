"""Tests for IQR outlier rejection."""
import numpy as np
import pytest

from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.outlier_filter import OutlierFilter, remove_outliers


class TestQuartiles:
    def test_nearest_rank_not_interpolated(self):
        q1, q3 = OutlierFilter.quartiles([8, 1, 7, 2, 6, 3, 5, 4])
        # sorted[floor(8 * 0.25)] = sorted[2], sorted[floor(8 * 0.75)] = sorted[6]
        assert q1 == 3
        assert q3 == 7

    def test_bounds_unclamped_for_altitude(self):
        lower, upper = OutlierFilter().bounds([-50, 0, 10, 20], MetricKind.ALTITUDE)
        assert lower == -30
        assert upper == 50

    def test_bounds_clamped_to_hard_limits(self):
        lower, upper = OutlierFilter().bounds([0, 0, 5, 10], MetricKind.POWER)
        assert lower == 0.0
        assert upper == 25.0


class TestOutlierFilter:
    def test_fewer_than_four_values_pass_through(self):
        assert remove_outliers([300.0, 10.0, 5.0], MetricKind.HEART_RATE) == [300.0, 10.0, 5.0]

    def test_rejects_spike_and_keeps_order(self):
        values = [120, 122, 121, 119, 123, 400, 120]
        assert remove_outliers(values, MetricKind.HEART_RATE) == [120, 122, 121, 119, 123, 120]

    def test_hard_limits_reject_even_consistent_values(self):
        # IQR fence [223, 231] lies entirely above the 220 bpm limit
        assert remove_outliers([225, 226, 227, 228], MetricKind.HEART_RATE) == []

    def test_keep_mask_matches_survivors(self):
        values = [30.0, 31.0, 29.5, 30.5, 95.0, 30.2]
        result = OutlierFilter().apply(values, MetricKind.SPEED)
        assert result.rejected_count == 1
        assert list(result.keep_mask) == [True, True, True, True, False, True]
        assert result.kept == [30.0, 31.0, 29.5, 30.5, 30.2]

    def test_idempotent(self):
        rng = np.random.default_rng(3)
        values = list(rng.normal(200, 40, 500)) + [1500.0, 1800.0, 5.0]
        once = remove_outliers(values, MetricKind.POWER)
        twice = remove_outliers(once, MetricKind.POWER)
        assert twice == once

    def test_multiplier_is_configurable(self):
        values = [10, 10, 11, 11, 12, 12, 16]
        assert 16 not in OutlierFilter(multiplier=1.5).filter(values, MetricKind.CADENCE)
        assert 16 in OutlierFilter(multiplier=10).filter(values, MetricKind.CADENCE)

    def test_negative_multiplier_rejected(self):
        with pytest.raises(ValueError):
            OutlierFilter(multiplier=-1)
