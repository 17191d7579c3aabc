"""
Outlier Rejection Module (IQR Algorithm)
========================================
Rejects implausible sensor readings using inter-quartile range bounds
clamped to each metric's physical limits.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from fitmerge.processing.metrics import METRIC_SPECS, MetricKind


@dataclass
class OutlierResult:
    """Results from an outlier rejection pass."""
    kept: List[float]
    keep_mask: np.ndarray
    lower: Optional[float]
    upper: Optional[float]
    rejected_count: int


class OutlierFilter:
    """
    Removes outliers from one metric's values using the IQR method.

    q1, q3 = nearest-rank quartiles of the sorted values
    bounds = [q1 - k * iqr, q3 + k * iqr] ∩ [hard_low, hard_high]

    Bounds are recomputed over the survivors until a pass rejects nothing,
    so filtering already-filtered data is a no-op.
    """

    MIN_VALUES = 4

    def __init__(self, multiplier: float = 1.5):
        """
        Initialize the filter.

        Args:
            multiplier: IQR multiplier k (1.5 is the Tukey fence)
        """
        if multiplier < 0:
            raise ValueError(f"IQR multiplier must be non-negative, got {multiplier}")
        self.multiplier = multiplier

    @staticmethod
    def quartiles(values: Sequence[float]) -> Tuple[float, float]:
        """Nearest-rank (not interpolated) first and third quartiles."""
        ordered = np.sort(np.asarray(values, dtype=float))
        n = len(ordered)
        q1 = float(ordered[int(np.floor(n * 0.25))])
        q3 = float(ordered[int(np.floor(n * 0.75))])
        return q1, q3

    def bounds(self, values: Sequence[float], kind: MetricKind) -> Tuple[float, float]:
        """
        Calculate acceptance bounds for a metric.

        Args:
            values: Present values for the metric (at least MIN_VALUES)
            kind: Metric whose hard limits clamp the statistical bounds

        Returns:
            Tuple of (lower, upper), inclusive
        """
        q1, q3 = self.quartiles(values)
        iqr = q3 - q1
        lower = q1 - self.multiplier * iqr
        upper = q3 + self.multiplier * iqr

        spec = METRIC_SPECS[kind]
        if spec.hard_low is not None:
            lower = max(spec.hard_low, lower)
        if spec.hard_high is not None:
            upper = min(spec.hard_high, upper)
        return lower, upper

    def apply(self, values: Sequence[float], kind: MetricKind) -> OutlierResult:
        """
        Detect outliers and return survivors with the mask that selected them.

        Args:
            values: Present values for one metric, in sample order
            kind: Metric being filtered

        Returns:
            OutlierResult; survivors keep their relative order
        """
        arr = np.asarray(values, dtype=float)
        keep_mask = np.ones(len(arr), dtype=bool)
        lower: Optional[float] = None
        upper: Optional[float] = None

        while np.count_nonzero(keep_mask) >= self.MIN_VALUES:
            survivors = arr[keep_mask]
            lower, upper = self.bounds(survivors, kind)
            outside = keep_mask & ((arr < lower) | (arr > upper))
            if not np.any(outside):
                break
            keep_mask &= ~outside

        kept = [float(v) for v in arr[keep_mask]]
        return OutlierResult(
            kept=kept,
            keep_mask=keep_mask,
            lower=lower,
            upper=upper,
            rejected_count=int(len(arr) - len(kept)),
        )

    def filter(self, values: Sequence[float], kind: MetricKind) -> List[float]:
        """Return only the values considered valid."""
        if len(values) < self.MIN_VALUES:
            return list(values)
        return self.apply(values, kind).kept


def remove_outliers(values: Sequence[float], kind: MetricKind, multiplier: float = 1.5) -> List[float]:
    """
    Convenience function to filter one metric's values.

    Args:
        values: Present values for the metric
        kind: Metric being filtered
        multiplier: IQR multiplier

    Returns:
        Surviving values in original order
    """
    return OutlierFilter(multiplier=multiplier).filter(values, kind)
