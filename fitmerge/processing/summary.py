"""
Summary Statistics Module
=========================
Aggregates the resampled grid into per-metric statistics, duration and
elevation gain, plus per-source summaries of the raw recordings.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from fitmerge.processing.metrics import METRIC_SPECS, MetricKind
from fitmerge.processing.resampler import CombinedFrame
from fitmerge.processing.samples import Source


@dataclass(frozen=True)
class MetricStats:
    """Display-rounded statistics for one metric."""
    avg: float
    max: float
    min: float

    def to_dict(self) -> Dict[str, float]:
        return {'avg': self.avg, 'max': self.max, 'min': self.min}


@dataclass(frozen=True)
class Summary:
    """Statistics over the combined grid."""
    duration_seconds: float = 0.0
    available_metrics: FrozenSet[MetricKind] = frozenset()
    stats: Mapping[MetricKind, MetricStats] = field(default_factory=dict)
    elevation_gain: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'available_metrics', frozenset(self.available_metrics))
        object.__setattr__(self, 'stats', MappingProxyType(dict(self.stats)))

    def to_dict(self) -> Dict:
        return {
            'duration_seconds': self.duration_seconds,
            'available_metrics': [k.value for k in MetricKind if k in self.available_metrics],
            'stats': {k.value: s.to_dict() for k, s in self.stats.items()},
            'elevation_gain': self.elevation_gain,
        }


EMPTY_SUMMARY = Summary()


@dataclass(frozen=True)
class SourceSummary:
    """Summary of one raw recording, before merging."""
    name: str
    sample_count: int
    duration_seconds: float
    available_metrics: FrozenSet[MetricKind]
    averages: Mapping[MetricKind, float] = field(default_factory=dict)
    maximums: Mapping[MetricKind, float] = field(default_factory=dict)
    total_distance_km: Optional[float] = None
    avg_temperature: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'averages', MappingProxyType(dict(self.averages)))
        object.__setattr__(self, 'maximums', MappingProxyType(dict(self.maximums)))

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'sample_count': self.sample_count,
            'duration_seconds': self.duration_seconds,
            'available_metrics': [k.value for k in MetricKind if k in self.available_metrics],
            'averages': {k.value: v for k, v in self.averages.items()},
            'maximums': {k.value: v for k, v in self.maximums.items()},
            'total_distance_km': self.total_distance_km,
            'avg_temperature': self.avg_temperature,
        }


def elevation_gain(altitudes: Iterable[Optional[float]]) -> float:
    """
    Sum of positive altitude deltas in chronological order.

    Descents are ignored, never subtracted. Absent points are skipped, so
    the delta spans the gap between the surrounding present values.
    """
    present = np.asarray([a for a in altitudes if a is not None], dtype=float)
    if len(present) < 2:
        return 0.0
    deltas = np.diff(present)
    return float(np.sum(deltas[deltas > 0]))


def format_elapsed(seconds: float) -> str:
    """Chart axis label: H:MM:SS past one hour, else M:SS."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class SummaryAggregator:
    """
    Computes statistics over the combined grid.

    Absent points are excluded from every statistic; a metric with no
    present value at all is left out of the stats.
    """

    def metric_stats(self, values: Sequence[Optional[float]], kind: MetricKind) -> Optional[MetricStats]:
        """
        Average, maximum and minimum over the present values.

        Args:
            values: Resampled values (None = absent)
            kind: Metric, for display rounding

        Returns:
            MetricStats, or None when nothing is present
        """
        present = np.asarray([v for v in values if v is not None], dtype=float)
        if len(present) == 0:
            return None

        spec = METRIC_SPECS[kind]
        return MetricStats(
            avg=spec.round(float(np.mean(present))),
            max=spec.round(float(np.max(present))),
            min=spec.round(float(np.min(present))),
        )

    def summarize(
        self,
        frames: Sequence[CombinedFrame],
        available_metrics: Iterable[MetricKind]
    ) -> Summary:
        """
        Summarize a combined grid.

        Args:
            frames: Resampled grid, ascending by timestamp
            available_metrics: Metrics that had at least one valid sample

        Returns:
            Summary; EMPTY_SUMMARY for an empty grid
        """
        if not frames:
            return EMPTY_SUMMARY

        available = frozenset(available_metrics)
        stats: Dict[MetricKind, MetricStats] = {}
        for kind in MetricKind:
            if kind not in available:
                continue
            result = self.metric_stats([f.get(kind) for f in frames], kind)
            if result is not None:
                stats[kind] = result

        gain = None
        if MetricKind.ALTITUDE in stats:
            altitude = METRIC_SPECS[MetricKind.ALTITUDE]
            gain = altitude.round(elevation_gain(f.get(MetricKind.ALTITUDE) for f in frames))

        return Summary(
            duration_seconds=(frames[-1].timestamp - frames[0].timestamp) / 1000.0,
            available_metrics=available,
            stats=stats,
            elevation_gain=gain,
        )

    def summarize_source(self, source: Source) -> SourceSummary:
        """
        Summarize one raw recording.

        Samples may arrive out of time order, so duration spans the earliest
        to the latest timestamp and total distance is the cumulative distance
        of the latest sample that reports one.
        """
        samples = sorted(source.samples, key=lambda s: s.timestamp)
        available = source.available_metrics
        if not samples:
            return SourceSummary(
                name=source.name,
                sample_count=0,
                duration_seconds=0.0,
                available_metrics=available,
            )

        averages: Dict[MetricKind, float] = {}
        maximums: Dict[MetricKind, float] = {}
        for kind in MetricKind:
            if kind not in available:
                continue
            spec = METRIC_SPECS[kind]
            values = [s.get(kind) for s in samples if spec.accepts(s.get(kind))]
            averages[kind] = spec.round(float(np.mean(values)))
            maximums[kind] = spec.round(float(np.max(values)))

        distances = [s.distance for s in samples if s.distance is not None]
        total_distance_km = round(distances[-1] / 1000.0, 2) if distances else None

        temperatures = [s.temperature for s in samples if s.temperature is not None]
        avg_temperature = round(float(np.mean(temperatures)), 1) if temperatures else None

        return SourceSummary(
            name=source.name,
            sample_count=len(samples),
            duration_seconds=(samples[-1].timestamp - samples[0].timestamp) / 1000.0,
            available_metrics=available,
            averages=averages,
            maximums=maximums,
            total_distance_km=total_distance_km,
            avg_temperature=avg_temperature,
        )


def summarize_frames(frames: Sequence[CombinedFrame], available_metrics: Iterable[MetricKind]) -> Summary:
    """Convenience function to summarize a combined grid."""
    return SummaryAggregator().summarize(frames, available_metrics)


def summarize_sources(sources: Iterable[Source]) -> List[SourceSummary]:
    """Convenience function to summarize raw sources."""
    aggregator = SummaryAggregator()
    return [aggregator.summarize_source(s) for s in sources]
