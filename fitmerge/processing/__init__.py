"""
Processing Module
=================
Sample cleaning, stream merging and timeline resampling for fitness-sensor
recordings.

Modules:
- metrics: Static per-metric table (validity, ranges, precision, smoothing)
- samples: Sample and Source value types
- outlier_filter: Reject implausible values using IQR bounds
- smoothing: Moving average, median and exponential smoothing
- cleaner: Per-source outlier rejection + smoothing
- merger: Merge sources into one time-sorted pool
- resampler: Capped timeline with exact/interpolate/nearest/absent resolution
- summary: Per-metric statistics, duration, elevation gain
- processor: Pipeline orchestration
"""

from fitmerge.processing.metrics import (
    METRIC_SPECS,
    MetricKind,
    MetricSpec,
    get_spec
)

from fitmerge.processing.samples import (
    Sample,
    Source,
    samples_from_records,
    to_epoch_ms
)

from fitmerge.processing.outlier_filter import (
    OutlierFilter,
    OutlierResult,
    remove_outliers
)

from fitmerge.processing.smoothing import (
    Smoother,
    SmoothingOptions,
    smooth_values
)

from fitmerge.processing.cleaner import (
    CleaningReport,
    SampleCleaner,
    clean_source
)

from fitmerge.processing.merger import (
    MergedPool,
    StreamMerger,
    merge_sources
)

from fitmerge.processing.resampler import (
    Bracket,
    CombinedFrame,
    MetricIndex,
    TimelineResampler,
    build_timeline,
    resample_pool,
    resolve
)

from fitmerge.processing.summary import (
    MetricStats,
    SourceSummary,
    Summary,
    SummaryAggregator,
    elevation_gain,
    format_elapsed
)

from fitmerge.processing.processor import (
    CombinedResult,
    CombineProcessor,
    combine_sources
)

__all__ = [
    # Metrics
    'METRIC_SPECS',
    'MetricKind',
    'MetricSpec',
    'get_spec',

    # Samples
    'Sample',
    'Source',
    'samples_from_records',
    'to_epoch_ms',

    # Outlier filter
    'OutlierFilter',
    'OutlierResult',
    'remove_outliers',

    # Smoothing
    'Smoother',
    'SmoothingOptions',
    'smooth_values',

    # Cleaner
    'CleaningReport',
    'SampleCleaner',
    'clean_source',

    # Merger
    'MergedPool',
    'StreamMerger',
    'merge_sources',

    # Resampler
    'Bracket',
    'CombinedFrame',
    'MetricIndex',
    'TimelineResampler',
    'build_timeline',
    'resample_pool',
    'resolve',

    # Summary
    'MetricStats',
    'SourceSummary',
    'Summary',
    'SummaryAggregator',
    'elevation_gain',
    'format_elapsed',

    # Processor
    'CombinedResult',
    'CombineProcessor',
    'combine_sources',
]
