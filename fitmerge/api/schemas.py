"""
Pydantic Schemas for API
========================
Request and response models for FastAPI endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


MetricName = Literal["power", "heart_rate", "speed", "cadence", "altitude"]
SmoothingMethod = Literal["moving_average", "median", "exponential"]


# =============================================================================
# Base Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime
    version: str


# =============================================================================
# Metric Models
# =============================================================================

class MetricInfo(BaseModel):
    metric: MetricName
    label: str
    units: str
    hard_low: Optional[float] = None
    hard_high: Optional[float] = None
    precision: int
    smoothing_method: SmoothingMethod
    smoothing_window: int
    reject_outliers: bool


class MetricListResponse(BaseModel):
    metrics: List[MetricInfo]
    total: int


# =============================================================================
# Combine Request Models
# =============================================================================

class SampleRecord(BaseModel):
    """One decoded sample; timestamp in epoch milliseconds or ISO-8601."""
    timestamp: Union[int, float, datetime]
    power: Optional[float] = None
    heart_rate: Optional[float] = None
    speed: Optional[float] = None
    cadence: Optional[float] = None
    altitude: Optional[float] = None
    distance: Optional[float] = None
    temperature: Optional[float] = None


class SourcePayload(BaseModel):
    name: str = "source"
    samples: List[SampleRecord] = Field(default_factory=list)
    available_metrics: Optional[List[MetricName]] = None  # as reported by the decoder


class SmoothingOverride(BaseModel):
    method: SmoothingMethod
    window_size: Optional[int] = Field(default=None, ge=1, le=301)
    alpha: Optional[float] = Field(default=None, gt=0.0, le=1.0)


class CombineOptions(BaseModel):
    max_points: Optional[int] = Field(default=None, ge=2, le=100_000)
    max_gap_seconds: Optional[float] = Field(default=None, ge=0.0, le=86_400.0)
    clean: Optional[bool] = None
    smoothing: Dict[MetricName, SmoothingOverride] = Field(default_factory=dict)


class CombineRequest(BaseModel):
    sources: List[SourcePayload] = Field(default_factory=list)
    options: Optional[CombineOptions] = None


class DemoCombineRequest(BaseModel):
    duration_seconds: float = Field(default=1800.0, ge=60.0, le=6 * 3600.0)
    seed: Optional[int] = None
    options: Optional[CombineOptions] = None


# =============================================================================
# Combine Response Models
# =============================================================================

class MetricStatsOut(BaseModel):
    avg: float
    max: float
    min: float


class SummaryOut(BaseModel):
    duration_seconds: float
    available_metrics: List[MetricName]
    stats: Dict[MetricName, MetricStatsOut]
    elevation_gain: Optional[float] = None


class SourceSummaryOut(BaseModel):
    name: str
    sample_count: int
    duration_seconds: float
    available_metrics: List[MetricName]
    averages: Dict[MetricName, float]
    maximums: Dict[MetricName, float]
    total_distance_km: Optional[float] = None
    avg_temperature: Optional[float] = None


class CombineResponse(BaseModel):
    # Frames carry only available metrics; null marks an absent value
    frames: List[Dict[str, Any]]
    summary: SummaryOut
    sources: List[SourceSummaryOut]
    total_points: int
    processing_time_ms: float
