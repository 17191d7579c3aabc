"""
Processing Pipeline Orchestrator
================================
Orchestrates all processing steps: clean → merge → resample → summarize.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from fitmerge.processing.cleaner import SampleCleaner
from fitmerge.processing.merger import MergedPool, StreamMerger
from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.outlier_filter import OutlierFilter
from fitmerge.processing.resampler import (
    DEFAULT_MAX_GAP_MS,
    DEFAULT_MAX_POINTS,
    DEFAULT_MIN_STEP_MS,
    CombinedFrame,
    TimelineResampler,
)
from fitmerge.processing.samples import Source
from fitmerge.processing.smoothing import Smoother, SmoothingOptions
from fitmerge.processing.summary import (
    EMPTY_SUMMARY,
    SourceSummary,
    Summary,
    SummaryAggregator,
    format_elapsed,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CombinedResult:
    """Complete output of one combine call."""
    frames: Tuple[CombinedFrame, ...] = field(default=(), repr=False)
    summary: Summary = EMPTY_SUMMARY
    source_summaries: Tuple[SourceSummary, ...] = ()
    first_time: Optional[int] = None

    # Processing metadata
    processing_time_ms: float = 0.0
    original_sample_count: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'frames', tuple(self.frames))
        object.__setattr__(self, 'source_summaries', tuple(self.source_summaries))

    @property
    def available_metrics(self) -> FrozenSet[MetricKind]:
        return self.summary.available_metrics

    @property
    def is_empty(self) -> bool:
        return not self.frames

    def frame_to_dict(self, frame: CombinedFrame) -> Dict[str, Any]:
        """Flatten a frame for charting: timestamp, elapsed time and one key per metric."""
        elapsed = (frame.timestamp - self.first_time) / 1000.0 if self.first_time is not None else 0.0
        row: Dict[str, Any] = {
            'timestamp': frame.timestamp,
            'elapsed_seconds': elapsed,
            'time': format_elapsed(elapsed),
        }
        for kind in MetricKind:
            if kind in frame.values:
                row[kind.value] = frame.values[kind]
        return row

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready rendering."""
        return {
            'frames': [self.frame_to_dict(f) for f in self.frames],
            'summary': self.summary.to_dict(),
            'sources': [s.to_dict() for s in self.source_summaries],
        }


class CombineProcessor:
    """
    Orchestrates the complete combine pipeline for 0..N sources.

    Pipeline:
    1. Clean → Outlier rejection + smoothing per metric per source
    2. Merge → One time-sorted pool
    3. Resample → Capped timeline, value-or-absent per metric
    4. Summarize → Per-metric stats, duration, elevation gain

    Holds no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        max_points: int = DEFAULT_MAX_POINTS,
        min_step_ms: int = DEFAULT_MIN_STEP_MS,
        max_gap_ms: int = DEFAULT_MAX_GAP_MS,
        clean: bool = True,
        smoothing: Optional[Dict[MetricKind, SmoothingOptions]] = None,
        outlier_metrics: Optional[Iterable[MetricKind]] = None,
        iqr_multiplier: float = 1.5,
        clean_metrics: Optional[Iterable[MetricKind]] = None
    ):
        """
        Initialize the processor.

        Args:
            max_points: Timeline point budget
            min_step_ms: Finest timeline step
            max_gap_ms: Maximum interpolation / hold gap
            clean: Whether to run outlier rejection and smoothing
            smoothing: Per-metric smoothing overrides
            outlier_metrics: Metrics subject to outlier rejection
                             (None = per the metric table)
            iqr_multiplier: IQR fence multiplier
            clean_metrics: Metrics to clean when clean is on (None = all)
        """
        self.clean = clean
        self.cleaner = SampleCleaner(
            outlier_filter=OutlierFilter(multiplier=iqr_multiplier),
            smoother=Smoother(overrides=smoothing),
            outlier_metrics=outlier_metrics,
            metrics=clean_metrics,
        )
        self.merger = StreamMerger()
        self.resampler = TimelineResampler(
            max_points=max_points,
            min_step_ms=min_step_ms,
            max_gap_ms=max_gap_ms,
        )
        self.aggregator = SummaryAggregator()

    @classmethod
    def from_config(cls, config=None) -> "CombineProcessor":
        """
        Build a processor from application configuration.

        Args:
            config: fitmerge.config.Config (default: get_config())
        """
        from fitmerge.config import get_config

        if config is None:
            config = get_config()
        return cls(
            max_points=config.resample.max_points,
            min_step_ms=config.resample.min_step_ms,
            max_gap_ms=config.resample.max_gap_ms,
            clean=config.cleaning.enabled,
            smoothing=config.cleaning.smoothing,
            outlier_metrics=config.cleaning.outlier_metrics,
            iqr_multiplier=config.cleaning.iqr_multiplier,
            clean_metrics=config.cleaning.metrics,
        )

    def clean_sources(self, sources: List[Source]) -> List[Source]:
        if not self.clean:
            return sources
        return [self.cleaner.clean_source(s) for s in sources]

    def merge(self, sources: List[Source]) -> MergedPool:
        return self.merger.merge(self.clean_sources(sources))

    def process(self, sources: Iterable[Source]) -> CombinedResult:
        """
        Run the full pipeline.

        Args:
            sources: Decoded recordings (any number, possibly empty)

        Returns:
            CombinedResult; an empty result when there are no samples
        """
        start_time = time.perf_counter()
        sources = list(sources)
        original_count = sum(len(s) for s in sources)

        source_summaries = [self.aggregator.summarize_source(s) for s in sources]

        # Step 1 + 2: Clean each source, then merge
        pool = self.merge(sources)
        if pool.is_empty:
            logger.info("No samples in %d source(s); returning empty result", len(sources))
            return CombinedResult(
                source_summaries=source_summaries,
                processing_time_ms=(time.perf_counter() - start_time) * 1000,
                original_sample_count=original_count,
            )

        # Step 3: Resample onto the shared timeline
        frames = self.resampler.resample(pool)

        # Step 4: Summary over the resampled grid
        summary = self.aggregator.summarize(frames, pool.available_metrics)

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Combined %d samples from %d source(s) into %d frames in %.1fms",
            original_count, len(sources), len(frames), processing_time
        )

        return CombinedResult(
            frames=frames,
            summary=summary,
            source_summaries=source_summaries,
            first_time=pool.first_time,
            processing_time_ms=processing_time,
            original_sample_count=original_count,
        )


def combine_sources(sources: Iterable[Source], config=None) -> CombinedResult:
    """
    Convenience function to combine recordings.

    Args:
        sources: Decoded recordings
        config: Optional fitmerge.config.Config; defaults to environment config

    Returns:
        CombinedResult
    """
    return CombineProcessor.from_config(config).process(sources)


if __name__ == "__main__":
    # Smoke-test the pipeline on two simulated recordings
    from fitmerge.simulator import ActivitySimulator, RideConfiguration

    print("Testing Combine Pipeline")
    print("=" * 60)

    bike = ActivitySimulator(RideConfiguration(name="bike computer", duration_seconds=5400, seed=1))
    watch = ActivitySimulator(RideConfiguration(
        name="watch", duration_seconds=3600, start_offset_seconds=900,
        sample_interval_seconds=2.0, metrics=("heart_rate", "altitude"), seed=2,
    ))

    result = CombineProcessor().process([bike.generate_source(), watch.generate_source()])

    print(f"  Original samples: {result.original_sample_count:,}")
    print(f"  Frames: {len(result.frames):,}")
    print(f"  Duration: {format_elapsed(result.summary.duration_seconds)}")
    print(f"  Processing time: {result.processing_time_ms:.1f}ms")
    for kind, stats in result.summary.stats.items():
        print(f"  {kind.value:>10}: avg={stats.avg} max={stats.max} min={stats.min}")
    print(f"  Elevation gain: {result.summary.elevation_gain}")
