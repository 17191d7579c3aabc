"""
Sample Data Model
=================
Immutable value types for decoded sensor samples and recording sources.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from fitmerge.processing.metrics import METRIC_SPECS, MetricKind


Timestamp = Union[int, float, str, datetime]


def to_epoch_ms(ts: Timestamp) -> int:
    """
    Normalize a timestamp to integer epoch milliseconds.

    Accepts epoch milliseconds (int/float), datetimes and ISO-8601 strings.
    Naive datetimes are taken as UTC.
    """
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.replace('Z', '+00:00'))
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(round(ts.timestamp() * 1000))
    return int(round(float(ts)))


@dataclass(frozen=True)
class Sample:
    """One timestamped reading with any subset of metrics present."""
    timestamp: int
    metrics: Mapping[MetricKind, float] = field(default_factory=dict)
    distance: Optional[float] = None      # cumulative metres
    temperature: Optional[float] = None   # Celsius

    def __post_init__(self):
        # Freeze the metric mapping so cleaning passes cannot alias each other
        object.__setattr__(self, 'metrics', MappingProxyType(dict(self.metrics)))

    def get(self, kind: MetricKind) -> Optional[float]:
        return self.metrics.get(kind)

    def has(self, kind: MetricKind) -> bool:
        return kind in self.metrics

    def with_metric(self, kind: MetricKind, value: Optional[float]) -> "Sample":
        """Return a copy with one metric replaced (None removes it)."""
        metrics = dict(self.metrics)
        if value is None:
            metrics.pop(kind, None)
        else:
            metrics[kind] = value
        return Sample(
            timestamp=self.timestamp,
            metrics=metrics,
            distance=self.distance,
            temperature=self.temperature,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Sample":
        """
        Build a Sample from a decoder record dict.

        Args:
            record: Dict with 'timestamp' plus optional metric keys
                    ('power', 'heart_rate', ...), 'distance', 'temperature'

        Returns:
            Sample with only the non-null numeric fields present
        """
        metrics: Dict[MetricKind, float] = {}
        for kind in MetricKind:
            value = record.get(kind.value)
            if value is not None:
                metrics[kind] = float(value)

        distance = record.get('distance')
        temperature = record.get('temperature')

        return cls(
            timestamp=to_epoch_ms(record['timestamp']),
            metrics=metrics,
            distance=float(distance) if distance is not None else None,
            temperature=float(temperature) if temperature is not None else None,
        )

    def to_record(self) -> Dict[str, Any]:
        """Inverse of from_record, omitting absent fields."""
        record: Dict[str, Any] = {'timestamp': self.timestamp}
        for kind, value in self.metrics.items():
            record[kind.value] = value
        if self.distance is not None:
            record['distance'] = self.distance
        if self.temperature is not None:
            record['temperature'] = self.temperature
        return record


@dataclass(frozen=True)
class Source:
    """
    One independent recording session.

    Samples keep their arrival order, which is not necessarily time order.
    reported_metrics is the set the upstream decoder declared present; when
    omitted it is inferred from the samples.
    """
    name: str
    samples: Tuple[Sample, ...] = ()
    reported_metrics: Optional[FrozenSet[MetricKind]] = None

    def __post_init__(self):
        object.__setattr__(self, 'samples', tuple(self.samples))
        if self.reported_metrics is not None:
            object.__setattr__(self, 'reported_metrics', frozenset(self.reported_metrics))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def available_metrics(self) -> FrozenSet[MetricKind]:
        """Metrics with at least one valid value, limited to reported ones."""
        present = frozenset(
            kind for kind in MetricKind
            if any(METRIC_SPECS[kind].accepts(s.get(kind)) for s in self.samples)
        )
        if self.reported_metrics is None:
            return present
        return present & self.reported_metrics

    def with_samples(self, samples: Iterable[Sample]) -> "Source":
        return Source(name=self.name, samples=tuple(samples), reported_metrics=self.reported_metrics)

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Iterable[Mapping[str, Any]],
        reported_metrics: Optional[Iterable[Union[str, MetricKind]]] = None
    ) -> "Source":
        """Build a Source from decoder record dicts."""
        reported = None
        if reported_metrics is not None:
            reported = frozenset(
                m if isinstance(m, MetricKind) else MetricKind.parse(m)
                for m in reported_metrics
            )
        return cls(
            name=name,
            samples=tuple(Sample.from_record(r) for r in records),
            reported_metrics=reported,
        )


def samples_from_records(records: Iterable[Mapping[str, Any]]) -> List[Sample]:
    """Convenience conversion of decoder records to Samples."""
    return [Sample.from_record(r) for r in records]
