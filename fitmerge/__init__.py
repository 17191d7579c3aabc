"""
FitMerge
========
Combines fitness-sensor recordings onto one time-aligned grid with summary
statistics.
"""

from fitmerge.processing import (
    CombinedResult,
    CombineProcessor,
    MetricKind,
    Sample,
    Source,
    combine_sources,
)

__version__ = "1.0.0"

__all__ = [
    'CombinedResult',
    'CombineProcessor',
    'MetricKind',
    'Sample',
    'Source',
    'combine_sources',
]
