"""
FitMerge Configuration Module
=============================
Handles environment variables for the combine pipeline and the API.
Values come from the process environment or a .env file.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional

from dotenv import load_dotenv

from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.resampler import (
    DEFAULT_MAX_GAP_MS,
    DEFAULT_MAX_POINTS,
    DEFAULT_MIN_STEP_MS,
)
from fitmerge.processing.smoothing import SmoothingOptions, default_options

# Load .env file if present
load_dotenv()


@dataclass(frozen=True)
class ResampleConfig:
    """Timeline and gap settings."""
    max_points: int = DEFAULT_MAX_POINTS
    min_step_ms: int = DEFAULT_MIN_STEP_MS
    max_gap_ms: int = DEFAULT_MAX_GAP_MS

    def __post_init__(self):
        if self.max_points < 2:
            raise ValueError(f"max_points must be at least 2, got {self.max_points}")
        if self.min_step_ms < 1:
            raise ValueError(f"min_step_ms must be positive, got {self.min_step_ms}")
        if self.max_gap_ms < 0:
            raise ValueError(f"max_gap_ms must be non-negative, got {self.max_gap_ms}")


@dataclass(frozen=True)
class CleaningConfig:
    """Outlier rejection and smoothing settings."""
    enabled: bool = True
    iqr_multiplier: float = 1.5
    smoothing: Dict[MetricKind, SmoothingOptions] = field(default_factory=dict)
    outlier_metrics: Optional[FrozenSet[MetricKind]] = None  # None = metric table flags
    metrics: Optional[FrozenSet[MetricKind]] = None          # None = all metrics


@dataclass(frozen=True)
class ApiConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class Config:
    """Main application configuration."""
    resample: ResampleConfig = field(default_factory=ResampleConfig)
    cleaning: CleaningConfig = field(default_factory=CleaningConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: str = "INFO"


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, cast):
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name}: expected a number, got {raw!r}") from None


def parse_smoothing(raw: str) -> Dict[MetricKind, SmoothingOptions]:
    """
    Parse smoothing overrides.

    Format: "metric=method[:window[:alpha]],..." e.g.
    "heart_rate=median:5,altitude=exponential:9:0.2"
    """
    overrides: Dict[MetricKind, SmoothingOptions] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"FITMERGE_SMOOTHING: expected metric=method, got {item!r}")
        metric_name, spec = item.split("=", 1)
        kind = MetricKind.parse(metric_name)
        parts = spec.strip().split(":")
        defaults = default_options(kind)
        window = int(parts[1]) if len(parts) > 1 and parts[1] else defaults.window_size
        alpha = float(parts[2]) if len(parts) > 2 and parts[2] else defaults.alpha
        overrides[kind] = SmoothingOptions(method=parts[0].strip(), window_size=window, alpha=alpha)
    return overrides


def parse_metric_list(raw: str) -> FrozenSet[MetricKind]:
    """Parse a comma-separated metric list ("" = none)."""
    return frozenset(MetricKind.parse(m) for m in raw.split(",") if m.strip())


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Load configuration from the environment (.env already applied).

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        Config

    Raises:
        ValueError: A variable is present but malformed
    """
    env = os.environ if environ is None else environ

    resample = ResampleConfig(
        max_points=_parse_number("FITMERGE_MAX_POINTS", env.get("FITMERGE_MAX_POINTS", str(DEFAULT_MAX_POINTS)), int),
        min_step_ms=_parse_number("FITMERGE_MIN_STEP_MS", env.get("FITMERGE_MIN_STEP_MS", str(DEFAULT_MIN_STEP_MS)), int),
        max_gap_ms=int(round(1000 * _parse_number(
            "FITMERGE_MAX_GAP_SECONDS",
            env.get("FITMERGE_MAX_GAP_SECONDS", str(DEFAULT_MAX_GAP_MS / 1000)),
            float,
        ))),
    )

    outlier_metrics = None
    if "FITMERGE_OUTLIER_METRICS" in env:
        outlier_metrics = parse_metric_list(env["FITMERGE_OUTLIER_METRICS"])

    clean_metrics = None
    if "FITMERGE_CLEAN_METRICS" in env:
        clean_metrics = parse_metric_list(env["FITMERGE_CLEAN_METRICS"])

    cleaning = CleaningConfig(
        enabled=_parse_bool("FITMERGE_CLEAN", env.get("FITMERGE_CLEAN", "true")),
        iqr_multiplier=_parse_number("FITMERGE_IQR_MULTIPLIER", env.get("FITMERGE_IQR_MULTIPLIER", "1.5"), float),
        smoothing=parse_smoothing(env.get("FITMERGE_SMOOTHING", "")),
        outlier_metrics=outlier_metrics,
        metrics=clean_metrics,
    )

    api = ApiConfig(
        host=env.get("API_HOST", "0.0.0.0"),
        port=_parse_number("API_PORT", env.get("API_PORT", "8000"), int),
    )

    return Config(
        resample=resample,
        cleaning=cleaning,
        api=api,
        log_level=env.get("FITMERGE_LOG_LEVEL", "INFO").upper(),
    )


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the application configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None


if __name__ == "__main__":
    # Test configuration loading
    config = get_config()
    print("Configuration loaded successfully!")
    print(f"  Timeline: max {config.resample.max_points} points, "
          f"step >= {config.resample.min_step_ms}ms, gap <= {config.resample.max_gap_ms}ms")
    print(f"  Cleaning: {'on' if config.cleaning.enabled else 'off'}")
    print(f"  API: {config.api.host}:{config.api.port}")
