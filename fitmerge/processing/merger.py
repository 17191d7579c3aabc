"""
Stream Merging Module
=====================
Merges cleaned sources into one time-sorted sample pool.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple

from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.samples import Sample, Source


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedPool:
    """
    All sources' samples sorted ascending by timestamp.

    Duplicate timestamps across sources are kept; ties keep source order.
    """
    samples: Tuple[Sample, ...]
    first_time: int = 0
    last_time: int = 0
    available_metrics: FrozenSet[MetricKind] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.samples

    @property
    def duration_seconds(self) -> float:
        return (self.last_time - self.first_time) / 1000.0

    def __len__(self) -> int:
        return len(self.samples)


EMPTY_POOL = MergedPool(samples=())


class StreamMerger:
    """Concatenates and stable-sorts any number of sources."""

    def merge(self, sources: Iterable[Source]) -> MergedPool:
        """
        Merge sources into one pool.

        Args:
            sources: Cleaned sources (0..N)

        Returns:
            MergedPool; EMPTY_POOL when no source holds a sample
        """
        sources = list(sources)
        all_samples = [s for source in sources for s in source.samples]
        if not all_samples:
            logger.debug("No samples across %d source(s); returning empty pool", len(sources))
            return EMPTY_POOL

        # sorted() is stable, so equal timestamps keep source order
        ordered = tuple(sorted(all_samples, key=lambda s: s.timestamp))

        available: FrozenSet[MetricKind] = frozenset()
        for source in sources:
            available |= source.available_metrics

        pool = MergedPool(
            samples=ordered,
            first_time=ordered[0].timestamp,
            last_time=ordered[-1].timestamp,
            available_metrics=available,
        )
        logger.debug(
            "Merged %d samples from %d source(s), span %.1fs",
            len(ordered), len(sources), pool.duration_seconds
        )
        return pool


def merge_sources(sources: Iterable[Source]) -> MergedPool:
    """Convenience function to merge sources."""
    return StreamMerger().merge(sources)
