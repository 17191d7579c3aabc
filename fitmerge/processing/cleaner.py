"""
Sample Cleaning Module
======================
Runs outlier rejection then smoothing over each metric of one source,
writing results back into new Sample lists.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from fitmerge.processing.metrics import METRIC_SPECS, MetricKind
from fitmerge.processing.outlier_filter import OutlierFilter
from fitmerge.processing.samples import Sample, Source
from fitmerge.processing.smoothing import Smoother, SmoothingOptions


logger = logging.getLogger(__name__)


@dataclass
class CleaningStats:
    """Per-metric counts from one cleaning pass."""
    valid: int = 0
    invalid: int = 0
    rejected: int = 0


@dataclass
class CleaningReport:
    """Cleaning counts for a whole source."""
    source_name: str
    metrics: Dict[MetricKind, CleaningStats] = field(default_factory=dict)

    @property
    def total_rejected(self) -> int:
        return sum(s.rejected for s in self.metrics.values())


class SampleCleaner:
    """
    Cleans one source's samples metric by metric.

    Only samples holding a valid value for the metric take part. Rejected
    outliers and invalid readings lose the metric; samples that never had it
    stay without it. Timestamps and other metrics are never touched.
    """

    def __init__(
        self,
        outlier_filter: Optional[OutlierFilter] = None,
        smoother: Optional[Smoother] = None,
        outlier_metrics: Optional[Iterable[MetricKind]] = None,
        metrics: Optional[Iterable[MetricKind]] = None
    ):
        """
        Initialize the cleaner.

        Args:
            outlier_filter: Filter to use (default IQR k=1.5)
            smoother: Smoother to use (default per-metric smoothing)
            outlier_metrics: Metrics that go through outlier rejection
                             Defaults to those flagged in the metric table
            metrics: Metrics to clean (default all)
        """
        self.outlier_filter = outlier_filter or OutlierFilter()
        self.smoother = smoother or Smoother()
        if outlier_metrics is None:
            outlier_metrics = [k for k, spec in METRIC_SPECS.items() if spec.reject_outliers]
        self.outlier_metrics = frozenset(outlier_metrics)
        self.metrics = list(metrics) if metrics is not None else list(MetricKind)

    def clean_metric(
        self,
        samples: Sequence[Sample],
        kind: MetricKind,
        stats: Optional[CleaningStats] = None
    ) -> List[Sample]:
        """
        Outlier-filter then smooth one metric across a sample list.

        Args:
            samples: One source's samples in arrival order
            kind: Metric to clean
            stats: Optional counters to fill in

        Returns:
            New sample list of the same length
        """
        spec = METRIC_SPECS[kind]
        cleaned = list(samples)

        positions: List[int] = []
        for i, sample in enumerate(samples):
            value = sample.get(kind)
            if value is None:
                continue
            if spec.accepts(value):
                positions.append(i)
            else:
                cleaned[i] = sample.with_metric(kind, None)
                if stats is not None:
                    stats.invalid += 1

        if not positions:
            return cleaned

        # Smooth in time order even when samples arrived out of order
        positions.sort(key=lambda i: samples[i].timestamp)
        values = [float(samples[i].get(kind)) for i in positions]

        # Step 1: Outlier rejection
        if kind in self.outlier_metrics and len(values) >= OutlierFilter.MIN_VALUES:
            result = self.outlier_filter.apply(values, kind)
            for pos, keep in zip(positions, result.keep_mask):
                if not keep:
                    cleaned[pos] = cleaned[pos].with_metric(kind, None)
            positions = [pos for pos, keep in zip(positions, result.keep_mask) if keep]
            values = result.kept
            if stats is not None:
                stats.rejected += result.rejected_count

        # Step 2: Smoothing, written back in order to the surviving samples
        smoothed = self.smoother.smooth_metric(values, kind)
        for pos, value in zip(positions, smoothed):
            cleaned[pos] = cleaned[pos].with_metric(kind, value)

        if stats is not None:
            stats.valid += len(positions)

        return cleaned

    def clean_samples(
        self,
        samples: Sequence[Sample],
        source_name: str = ""
    ) -> Tuple[List[Sample], CleaningReport]:
        """
        Clean every configured metric in sequence.

        Each pass only rewrites its own metric, so passes compose.

        Returns:
            Tuple of (cleaned samples, CleaningReport)
        """
        report = CleaningReport(source_name=source_name)
        cleaned: List[Sample] = list(samples)
        for kind in self.metrics:
            stats = CleaningStats()
            cleaned = self.clean_metric(cleaned, kind, stats)
            if stats.valid or stats.invalid or stats.rejected:
                report.metrics[kind] = stats
                logger.debug(
                    "Cleaned %s/%s: %d valid, %d invalid, %d outliers",
                    source_name, kind.value, stats.valid, stats.invalid, stats.rejected
                )
        return cleaned, report

    def clean_source(self, source: Source) -> Source:
        """
        Clean every configured metric of a source.

        Args:
            source: Source to clean

        Returns:
            New Source with cleaned samples in the original order
        """
        cleaned, report = self.clean_samples(source.samples, source.name)
        if report.total_rejected:
            logger.info("Source %s: rejected %d outlier values", source.name, report.total_rejected)
        return source.with_samples(cleaned)


def clean_source(
    source: Source,
    smoothing: Optional[Dict[MetricKind, SmoothingOptions]] = None
) -> Source:
    """
    Convenience function to clean a source with default settings.

    Args:
        source: Source to clean
        smoothing: Optional per-metric smoothing overrides

    Returns:
        Cleaned Source
    """
    return SampleCleaner(smoother=Smoother(overrides=smoothing)).clean_source(source)
