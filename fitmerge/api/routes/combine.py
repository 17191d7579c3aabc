"""
Combine Router
==============
Endpoint that merges decoded recordings into one chart-ready grid.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from fitmerge.api.schemas import CombineOptions, CombineRequest, CombineResponse, SourcePayload
from fitmerge.config import get_config
from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.processor import CombinedResult, CombineProcessor
from fitmerge.processing.samples import Source
from fitmerge.processing.smoothing import SmoothingOptions, default_options


logger = logging.getLogger(__name__)

router = APIRouter()


def build_processor(options: Optional[CombineOptions]) -> CombineProcessor:
    """
    Processor from environment config with per-request overrides.

    Raises:
        ValueError: The overrides produce an invalid configuration
    """
    config = get_config()
    if options is None:
        return CombineProcessor.from_config(config)

    smoothing = dict(config.cleaning.smoothing)
    for name, override in options.smoothing.items():
        kind = MetricKind.parse(name)
        base = smoothing.get(kind, default_options(kind))
        smoothing[kind] = SmoothingOptions(
            method=override.method,
            window_size=override.window_size or base.window_size,
            alpha=override.alpha or base.alpha,
        )

    max_gap_ms = config.resample.max_gap_ms
    if options.max_gap_seconds is not None:
        max_gap_ms = int(round(options.max_gap_seconds * 1000))

    return CombineProcessor(
        max_points=options.max_points or config.resample.max_points,
        min_step_ms=config.resample.min_step_ms,
        max_gap_ms=max_gap_ms,
        clean=config.cleaning.enabled if options.clean is None else options.clean,
        smoothing=smoothing,
        outlier_metrics=config.cleaning.outlier_metrics,
        iqr_multiplier=config.cleaning.iqr_multiplier,
        clean_metrics=config.cleaning.metrics,
    )


def payload_to_source(payload: SourcePayload) -> Source:
    """Convert a request source into the processing Source type."""
    return Source.from_records(
        payload.name,
        [sample.model_dump(exclude_none=True) for sample in payload.samples],
        reported_metrics=payload.available_metrics,
    )


def to_response(result: CombinedResult) -> CombineResponse:
    data = result.to_dict()
    return CombineResponse(
        frames=data['frames'],
        summary=data['summary'],
        sources=data['sources'],
        total_points=len(result.frames),
        processing_time_ms=round(result.processing_time_ms, 2),
    )


def run_combine(sources: List[Source], options: Optional[CombineOptions]) -> CombineResponse:
    """Build the processor, run it and shape the response."""
    try:
        processor = build_processor(options)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = processor.process(sources)
    return to_response(result)


# Plain def: FastAPI runs CPU-bound handlers in its threadpool
@router.post("", response_model=CombineResponse)
def combine(request: CombineRequest):
    """Merge up to N decoded recordings onto one timeline with summary statistics."""
    sources = [payload_to_source(p) for p in request.sources]
    logger.info(
        "Combine request: %d source(s), %d samples",
        len(sources), sum(len(s) for s in sources)
    )
    return run_combine(sources, request.options)
