"""
Timeline Resampling Module
==========================
Aligns merged multi-source samples to one bounded timeline.

Each (timestamp, metric) pair resolves through an ordered chain of
strategies: exact match, bracketing interpolation, nearest neighbour within
the gap limit, one-sided hold within the gap limit, absent.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from fitmerge.processing.merger import MergedPool
from fitmerge.processing.metrics import METRIC_SPECS, MetricKind


logger = logging.getLogger(__name__)


DEFAULT_MAX_POINTS = 3600
DEFAULT_MIN_STEP_MS = 1000
DEFAULT_MAX_GAP_MS = 30_000


# =============================================================================
# Per-metric index
# =============================================================================

@dataclass(frozen=True)
class Bracket:
    """Nearest valid samples around a target time for one metric."""
    t: int
    exact: Optional[float] = None
    before: Optional[Tuple[int, float]] = None   # (timestamp, value), ts <= t
    after: Optional[Tuple[int, float]] = None    # (timestamp, value), ts >= t


class MetricIndex:
    """
    Sorted (timestamp, value) arrays for one metric.

    Bracket lookups use binary search, so each target time costs
    O(log n) against the sample count.
    """

    def __init__(self, kind: MetricKind, timestamps: np.ndarray, values: np.ndarray):
        self.kind = kind
        self.timestamps = timestamps
        self.values = values

    @classmethod
    def from_pool(cls, pool: MergedPool, kind: MetricKind) -> "MetricIndex":
        """Index every valid value of a metric in a merged pool."""
        spec = METRIC_SPECS[kind]
        ts: List[int] = []
        vs: List[float] = []
        for sample in pool.samples:
            value = sample.get(kind)
            if spec.accepts(value):
                ts.append(sample.timestamp)
                vs.append(float(value))
        # Pool is already sorted; the stable sort only guards hand-built pools
        order = np.argsort(np.asarray(ts, dtype=np.int64), kind='stable')
        return cls(
            kind,
            np.asarray(ts, dtype=np.int64)[order],
            np.asarray(vs, dtype=float)[order],
        )

    def __len__(self) -> int:
        return len(self.timestamps)

    def _bracket_at(self, t: int, left: int, right: int) -> Bracket:
        n = len(self.timestamps)
        exact = None
        if left < n and self.timestamps[left] == t:
            exact = float(self.values[left])
        before = None
        if right > 0:
            before = (int(self.timestamps[right - 1]), float(self.values[right - 1]))
        after = None
        if left < n:
            after = (int(self.timestamps[left]), float(self.values[left]))
        return Bracket(t=int(t), exact=exact, before=before, after=after)

    def bracket(self, t: int) -> Bracket:
        """Find the bracket around a single target time."""
        left = int(np.searchsorted(self.timestamps, t, side='left'))
        right = int(np.searchsorted(self.timestamps, t, side='right'))
        return self._bracket_at(t, left, right)

    def brackets(self, timeline: Sequence[int]) -> List[Bracket]:
        """Find brackets for a whole timeline in one vectorized search."""
        targets = np.asarray(timeline, dtype=np.int64)
        lefts = np.searchsorted(self.timestamps, targets, side='left')
        rights = np.searchsorted(self.timestamps, targets, side='right')
        return [
            self._bracket_at(int(t), int(l), int(r))
            for t, l, r in zip(targets, lefts, rights)
        ]


# =============================================================================
# Resolution strategies
# =============================================================================

Strategy = Callable[[Bracket, int], Optional[float]]


def exact_match(bracket: Bracket, max_gap_ms: int) -> Optional[float]:
    """A sample sits exactly at t: use its value unchanged."""
    return bracket.exact


def interpolate(bracket: Bracket, max_gap_ms: int) -> Optional[float]:
    """Linear interpolation between before and after when they are close enough."""
    if bracket.before is None or bracket.after is None:
        return None
    t0, v0 = bracket.before
    t1, v1 = bracket.after
    if t1 - t0 > max_gap_ms:
        return None
    if bracket.t == t0:
        return v0
    if bracket.t == t1:
        return v1
    value = v0 + (v1 - v0) * (bracket.t - t0) / (t1 - t0)
    # Keep float rounding from stepping outside the bracket
    return min(max(value, min(v0, v1)), max(v0, v1))


def nearest_neighbor(bracket: Bracket, max_gap_ms: int) -> Optional[float]:
    """Bracket too wide to interpolate: hold the nearer side if it is within the gap."""
    if bracket.before is None or bracket.after is None:
        return None
    t0, v0 = bracket.before
    t1, v1 = bracket.after
    d0 = bracket.t - t0
    d1 = t1 - bracket.t
    if d0 <= d1:
        return v0 if d0 <= max_gap_ms else None
    return v1 if d1 <= max_gap_ms else None


def one_sided_hold(bracket: Bracket, max_gap_ms: int) -> Optional[float]:
    """Only one side exists (before the first or after the last sample)."""
    if bracket.before is not None and bracket.after is None:
        t0, v0 = bracket.before
        return v0 if bracket.t - t0 <= max_gap_ms else None
    if bracket.after is not None and bracket.before is None:
        t1, v1 = bracket.after
        return v1 if t1 - bracket.t <= max_gap_ms else None
    return None


RESOLUTION_CHAIN: Tuple[Strategy, ...] = (
    exact_match,
    interpolate,
    nearest_neighbor,
    one_sided_hold,
)


def resolve(
    bracket: Bracket,
    max_gap_ms: int = DEFAULT_MAX_GAP_MS,
    chain: Sequence[Strategy] = RESOLUTION_CHAIN
) -> Optional[float]:
    """
    Run the strategy chain; the first non-None answer wins.

    Returns:
        Resolved value, or None when the metric is absent at t
    """
    for strategy in chain:
        value = strategy(bracket, max_gap_ms)
        if value is not None:
            return value
    return None


# =============================================================================
# Timeline
# =============================================================================

def build_timeline(
    first_time: int,
    last_time: int,
    max_points: int = DEFAULT_MAX_POINTS,
    min_step_ms: int = DEFAULT_MIN_STEP_MS
) -> np.ndarray:
    """
    Build target timestamps spanning [first_time, last_time] inclusive.

    The step starts at min_step_ms and grows so the timeline never exceeds
    max_points. The last point is always last_time; the final step may be
    shorter than the others.

    Args:
        first_time: First sample time (epoch ms)
        last_time: Last sample time (epoch ms)
        max_points: Point budget (>= 2)
        min_step_ms: Finest step

    Returns:
        Strictly increasing int64 array
    """
    span = int(last_time) - int(first_time)
    if span <= 0:
        return np.array([first_time], dtype=np.int64)

    # ceil(span / (max_points - 1)) keeps ticks + closing point within budget
    step = max(int(min_step_ms), -(-span // (max_points - 1)))
    ticks = np.arange(first_time, last_time, step, dtype=np.int64)
    return np.append(ticks, np.int64(last_time))


@dataclass(frozen=True)
class CombinedFrame:
    """One row of the output grid; None marks an absent value."""
    timestamp: int
    values: Mapping[MetricKind, Optional[float]]

    def __post_init__(self):
        object.__setattr__(self, 'values', MappingProxyType(dict(self.values)))

    def get(self, kind: MetricKind) -> Optional[float]:
        return self.values.get(kind)


class TimelineResampler:
    """
    Resamples a merged pool onto a capped, uniform timeline.
    """

    def __init__(
        self,
        max_points: int = DEFAULT_MAX_POINTS,
        min_step_ms: int = DEFAULT_MIN_STEP_MS,
        max_gap_ms: int = DEFAULT_MAX_GAP_MS,
        chain: Optional[Sequence[Strategy]] = None
    ):
        """
        Initialize resampler.

        Args:
            max_points: Maximum timeline length
            min_step_ms: Finest timeline step in milliseconds
            max_gap_ms: Largest gap bridged by interpolation or hold
            chain: Resolution strategies in priority order
        """
        if max_points < 2:
            raise ValueError(f"max_points must be at least 2, got {max_points}")
        if min_step_ms < 1:
            raise ValueError(f"min_step_ms must be positive, got {min_step_ms}")
        if max_gap_ms < 0:
            raise ValueError(f"max_gap_ms must be non-negative, got {max_gap_ms}")
        self.max_points = max_points
        self.min_step_ms = min_step_ms
        self.max_gap_ms = max_gap_ms
        self.chain = tuple(chain) if chain is not None else RESOLUTION_CHAIN

    def build_timeline(self, pool: MergedPool) -> List[int]:
        """Timeline for a pool; empty for an empty pool."""
        if pool.is_empty:
            return []
        timeline = build_timeline(pool.first_time, pool.last_time, self.max_points, self.min_step_ms)
        return [int(t) for t in timeline]

    def resample_metric(self, index: MetricIndex, timeline: Sequence[int]) -> List[Optional[float]]:
        """Resolve one metric at every timeline point."""
        return [resolve(b, self.max_gap_ms, self.chain) for b in index.brackets(timeline)]

    def resample(
        self,
        pool: MergedPool,
        metrics: Optional[Iterable[MetricKind]] = None
    ) -> List[CombinedFrame]:
        """
        Resample a merged pool.

        Args:
            pool: Merged, sorted samples
            metrics: Metrics to emit (default: the pool's available metrics)
                     Metrics without a single valid sample are never emitted

        Returns:
            One CombinedFrame per timeline point
        """
        timeline = self.build_timeline(pool)
        if not timeline:
            return []

        wanted = pool.available_metrics if metrics is None else frozenset(metrics)
        columns: Dict[MetricKind, List[Optional[float]]] = {}
        for kind in MetricKind:
            if kind not in wanted:
                continue
            index = MetricIndex.from_pool(pool, kind)
            if len(index) == 0:
                continue
            columns[kind] = self.resample_metric(index, timeline)

        logger.debug(
            "Resampled %d samples onto %d points (%d metrics)",
            len(pool), len(timeline), len(columns)
        )

        return [
            CombinedFrame(
                timestamp=t,
                values={kind: column[i] for kind, column in columns.items()},
            )
            for i, t in enumerate(timeline)
        ]


def resample_pool(
    pool: MergedPool,
    max_points: int = DEFAULT_MAX_POINTS,
    max_gap_ms: int = DEFAULT_MAX_GAP_MS
) -> List[CombinedFrame]:
    """
    Convenience function to resample a merged pool.

    Args:
        pool: Merged samples
        max_points: Timeline point budget
        max_gap_ms: Maximum interpolation gap

    Returns:
        List of CombinedFrame
    """
    return TimelineResampler(max_points=max_points, max_gap_ms=max_gap_ms).resample(pool)
