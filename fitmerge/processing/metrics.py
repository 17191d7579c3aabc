"""
Metric Definitions
==================
Static per-metric table: validity rules, plausible ranges, display precision
and default smoothing for every tracked sensor metric.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional


class MetricKind(Enum):
    """Sensor metrics tracked by the pipeline."""
    POWER = "power"
    HEART_RATE = "heart_rate"
    SPEED = "speed"
    CADENCE = "cadence"
    ALTITUDE = "altitude"

    @classmethod
    def parse(cls, name: str) -> "MetricKind":
        """Look up a metric by its wire name (e.g. 'heart_rate')."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown metric: {name}") from None


def _non_negative(value: float) -> bool:
    return value >= 0


def _positive(value: float) -> bool:
    return value > 0


def _any_value(value: float) -> bool:
    return True


@dataclass(frozen=True)
class MetricSpec:
    """Everything the pipeline needs to know about one metric."""
    kind: MetricKind
    label: str
    units: str
    is_valid: Callable[[float], bool]
    hard_low: Optional[float]    # None = unbounded
    hard_high: Optional[float]
    precision: int               # decimals used for display rounding
    smoothing_method: str
    smoothing_window: int
    reject_outliers: bool = True

    def accepts(self, value: Optional[float]) -> bool:
        """True when value is present, finite and passes the validity rule."""
        if value is None:
            return False
        try:
            value = float(value)
        except (TypeError, ValueError):
            return False
        if math.isnan(value) or math.isinf(value):
            return False
        return self.is_valid(value)

    def round(self, value: float) -> float:
        """Round to display precision."""
        if self.precision == 0:
            return float(round(value))
        return round(value, self.precision)


# Power 0 is a real reading (coasting); heart rate 0 is a strap dropout.
# Altitude swings legitimately across a ride, so it skips IQR rejection.
METRIC_SPECS: Dict[MetricKind, MetricSpec] = {
    MetricKind.POWER: MetricSpec(
        kind=MetricKind.POWER, label="Power", units="W",
        is_valid=_non_negative, hard_low=0.0, hard_high=2000.0,
        precision=0, smoothing_method="moving_average", smoothing_window=3,
    ),
    MetricKind.HEART_RATE: MetricSpec(
        kind=MetricKind.HEART_RATE, label="Heart Rate", units="bpm",
        is_valid=_positive, hard_low=40.0, hard_high=220.0,
        precision=0, smoothing_method="moving_average", smoothing_window=7,
    ),
    MetricKind.SPEED: MetricSpec(
        kind=MetricKind.SPEED, label="Speed", units="km/h",
        is_valid=_non_negative, hard_low=0.0, hard_high=80.0,
        precision=1, smoothing_method="median", smoothing_window=5,
    ),
    MetricKind.CADENCE: MetricSpec(
        kind=MetricKind.CADENCE, label="Cadence", units="rpm",
        is_valid=_non_negative, hard_low=0.0, hard_high=200.0,
        precision=0, smoothing_method="moving_average", smoothing_window=5,
    ),
    MetricKind.ALTITUDE: MetricSpec(
        kind=MetricKind.ALTITUDE, label="Elevation", units="m",
        is_valid=_any_value, hard_low=None, hard_high=None,
        precision=0, smoothing_method="moving_average", smoothing_window=9,
        reject_outliers=False,
    ),
}


def get_spec(kind: MetricKind) -> MetricSpec:
    """Get the metric table entry for a metric."""
    return METRIC_SPECS[kind]
