"""
Smoothing Module
================
Reduces sensor jitter with windowed filters: centred moving average,
median filter and exponential smoothing.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from fitmerge.processing.metrics import METRIC_SPECS, MetricKind


MOVING_AVERAGE = 'moving_average'
MEDIAN = 'median'
EXPONENTIAL = 'exponential'

SMOOTHING_METHODS = (MOVING_AVERAGE, MEDIAN, EXPONENTIAL)

DEFAULT_ALPHA = 0.3


@dataclass(frozen=True)
class SmoothingOptions:
    """Smoothing choice for one metric."""
    method: str = MOVING_AVERAGE
    window_size: int = 5
    alpha: float = DEFAULT_ALPHA

    def __post_init__(self):
        if self.method not in SMOOTHING_METHODS:
            raise ValueError(f"Unknown smoothing method: {self.method}")
        if self.window_size < 1:
            raise ValueError(f"Smoothing window must be at least 1, got {self.window_size}")
        if not 0 < self.alpha <= 1:
            raise ValueError(f"Exponential alpha must be in (0, 1], got {self.alpha}")


def default_options(kind: MetricKind) -> SmoothingOptions:
    """Default smoothing for a metric, taken from the metric table."""
    spec = METRIC_SPECS[kind]
    return SmoothingOptions(method=spec.smoothing_method, window_size=spec.smoothing_window)


def _window_bounds(i: int, n: int, half_window: int):
    return max(0, i - half_window), min(n, i + half_window + 1)


def moving_average(values: np.ndarray, window_size: int) -> np.ndarray:
    """
    Centred moving average; the window shrinks at the array edges.

    Uses a cumulative sum so each point costs O(1).
    """
    n = len(values)
    half_window = window_size // 2
    csum = np.concatenate(([0.0], np.cumsum(values, dtype=float)))
    idx = np.arange(n)
    start = np.maximum(0, idx - half_window)
    end = np.minimum(n, idx + half_window + 1)
    return (csum[end] - csum[start]) / (end - start)


def median_filter(values: np.ndarray, window_size: int) -> np.ndarray:
    """
    Median of the edge-clamped window around each point.

    Clamped edge windows can hold an even number of values; those take the
    mean of the two middle values rather than the upper-middle element, so
    [1, 100, 3] with window 3 starts at 50.5, not 100.
    """
    n = len(values)
    half_window = window_size // 2
    result = np.empty(n, dtype=float)
    for i in range(n):
        start, end = _window_bounds(i, n, half_window)
        result[i] = np.median(values[start:end])
    return result


def exponential_smoothing(values: np.ndarray, alpha: float = DEFAULT_ALPHA) -> np.ndarray:
    """s[0] = v[0]; s[i] = alpha * v[i] + (1 - alpha) * s[i-1]"""
    result = np.empty(len(values), dtype=float)
    if len(values) == 0:
        return result
    result[0] = values[0]
    for i in range(1, len(values)):
        result[i] = alpha * values[i] + (1 - alpha) * result[i - 1]
    return result


class Smoother:
    """
    Applies per-metric smoothing.

    Each metric gets its default method from the metric table unless the
    caller overrides it.
    """

    def __init__(self, overrides: Optional[Dict[MetricKind, SmoothingOptions]] = None):
        """
        Initialize the smoother.

        Args:
            overrides: Optional per-metric SmoothingOptions replacing the defaults
        """
        self.options: Dict[MetricKind, SmoothingOptions] = {
            kind: default_options(kind) for kind in MetricKind
        }
        if overrides:
            self.options.update(overrides)

    def smooth(self, values: Sequence[float], options: SmoothingOptions) -> List[float]:
        """
        Smooth a sequence with explicit options.

        Args:
            values: Ordered values for one metric
            options: Method, window and alpha

        Returns:
            Same-length list; input shorter than the window comes back unchanged
        """
        if len(values) < options.window_size:
            return list(values)

        arr = np.asarray(values, dtype=float)

        if options.method == MOVING_AVERAGE:
            smoothed = moving_average(arr, options.window_size)
        elif options.method == MEDIAN:
            smoothed = median_filter(arr, options.window_size)
        elif options.method == EXPONENTIAL:
            smoothed = exponential_smoothing(arr, options.alpha)
        else:
            raise ValueError(f"Unknown smoothing method: {options.method}")

        return [float(v) for v in smoothed]

    def smooth_metric(self, values: Sequence[float], kind: MetricKind) -> List[float]:
        """Smooth values using the options configured for a metric."""
        return self.smooth(values, self.options[kind])


def smooth_values(
    values: Sequence[float],
    method: str = MOVING_AVERAGE,
    window_size: int = 5,
    alpha: float = DEFAULT_ALPHA
) -> List[float]:
    """
    Convenience function to smooth a value sequence.

    Args:
        values: Values to smooth
        method: 'moving_average', 'median' or 'exponential'
        window_size: Window length (also the minimum input length)
        alpha: Exponential smoothing factor

    Returns:
        Smoothed values
    """
    options = SmoothingOptions(method=method, window_size=window_size, alpha=alpha)
    return Smoother().smooth(values, options)
