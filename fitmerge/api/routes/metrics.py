"""
Metrics Router
==============
Endpoint describing the tracked sensor metrics.
"""

from fastapi import APIRouter

from fitmerge.api.schemas import MetricInfo, MetricListResponse
from fitmerge.processing.metrics import METRIC_SPECS


router = APIRouter()


@router.get("", response_model=MetricListResponse)
async def list_metrics():
    """List all metrics with their ranges, precision and default smoothing."""
    metrics = [MetricInfo(
        metric=spec.kind.value,
        label=spec.label,
        units=spec.units,
        hard_low=spec.hard_low,
        hard_high=spec.hard_high,
        precision=spec.precision,
        smoothing_method=spec.smoothing_method,
        smoothing_window=spec.smoothing_window,
        reject_outliers=spec.reject_outliers
    ) for spec in METRIC_SPECS.values()]

    return MetricListResponse(metrics=metrics, total=len(metrics))
