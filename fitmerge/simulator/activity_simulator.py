"""
Ride Recording Simulator
========================
Synthetic cycling recordings in the decoded-record shape the combine
pipeline consumes. Signals are loosely coupled (terrain drives power, power
drives heart rate, speed and distance) with sensor noise, spikes and
dropouts layered on top.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from fitmerge.processing.samples import Source


# 2024-06-01T08:00:00Z
DEFAULT_START_MS = 1_717_228_800_000

ALL_METRICS = ("power", "heart_rate", "speed", "cadence", "altitude")


@dataclass
class RideConfiguration:
    """Configuration for one simulated recording."""

    # Recording identification
    name: str = "Simulated Ride"

    # Timing
    start_time_ms: int = DEFAULT_START_MS
    start_offset_seconds: float = 0.0
    duration_seconds: float = 3600.0
    sample_interval_seconds: float = 1.0

    # Which fields the simulated device records
    metrics: Tuple[str, ...] = ALL_METRICS
    record_distance: bool = True
    record_temperature: bool = True

    # Rider and terrain
    base_power: float = 200.0        # W
    resting_heart_rate: float = 60.0 # bpm
    heart_rate_per_watt: float = 0.4
    base_cadence: float = 88.0       # rpm
    base_altitude: float = 120.0     # m
    hill_amplitude: float = 40.0     # m
    hill_period_seconds: float = 1800.0
    ambient_temperature: float = 18.0

    # Sensor faults
    spike_rate: float = 0.002
    dropout_rate: float = 0.001

    seed: Optional[int] = None


class ActivitySimulator:
    """
    Generates a synthetic ride recording.
    """

    def __init__(self, config: RideConfiguration):
        self.config = config
        self.rng = np.random.default_rng(config.seed)
        self.phases = {m: self.rng.uniform(0, 2 * np.pi) for m in ALL_METRICS}

    def _altitude(self, t: float) -> float:
        c = self.config
        return c.base_altitude + c.hill_amplitude * np.sin(2 * np.pi * t / c.hill_period_seconds)

    def _gradient(self, t: float) -> float:
        """Terrain slope (m altitude per s) at time t."""
        c = self.config
        return (c.hill_amplitude * 2 * np.pi / c.hill_period_seconds
                * np.cos(2 * np.pi * t / c.hill_period_seconds))

    def _add_noise(self, base_value: float, t: float, metric: str,
                   drift_amp: float = 0.03,
                   noise_amp: float = 0.02) -> float:
        """Slow drift plus sensor noise around a base value."""
        phase = self.phases[metric]

        # Slow drift (fatigue, wind) - one cycle per ~10 minutes
        drift = drift_amp * base_value * np.sin(2 * np.pi * t / 600.0 + phase)

        noise = noise_amp * base_value * self.rng.standard_normal()

        return base_value + drift + noise

    def _inject_anomaly(self, value: float) -> Optional[float]:
        """Occasionally inject spikes or dropouts; None drops the field."""
        r = self.rng.random()

        if r < self.config.dropout_rate:
            return None

        if r < self.config.dropout_rate + self.config.spike_rate:
            return value * self.rng.uniform(2, 5)

        return value

    def generate_records(self) -> List[Dict[str, Any]]:
        """
        Generate the recording as decoder-style record dicts.

        Returns:
            List of {'timestamp': epoch ms, <metric>: value, ...}
        """
        c = self.config
        n = int(c.duration_seconds / c.sample_interval_seconds) + 1
        start_ms = c.start_time_ms + int(round(c.start_offset_seconds * 1000))

        records: List[Dict[str, Any]] = []
        heart_rate = c.resting_heart_rate
        distance = 0.0

        for i in range(n):
            t = c.start_offset_seconds + i * c.sample_interval_seconds

            # Climbing costs more power; descending is partly coasting
            power = max(0.0, c.base_power + 900.0 * self._gradient(t))
            power = self._add_noise(power, t, "power", noise_amp=0.08)

            # Heart rate lags power with a ~30 s time constant
            target_hr = c.resting_heart_rate + c.heart_rate_per_watt * power
            heart_rate += (target_hr - heart_rate) * min(1.0, c.sample_interval_seconds / 30.0)

            speed = max(0.0, 28.0 + 0.02 * (power - c.base_power) - 40.0 * self._gradient(t))
            speed = self._add_noise(speed, t, "speed")
            distance += speed / 3.6 * c.sample_interval_seconds

            values = {
                "power": max(0.0, power),
                "heart_rate": self._add_noise(heart_rate, t, "heart_rate", drift_amp=0.01, noise_amp=0.01),
                "speed": max(0.0, speed),
                "cadence": max(0.0, self._add_noise(c.base_cadence, t, "cadence")),
                "altitude": self._add_noise(self._altitude(t), t, "altitude", drift_amp=0.0, noise_amp=0.002),
            }

            record: Dict[str, Any] = {"timestamp": start_ms + int(round(i * c.sample_interval_seconds * 1000))}
            for metric in c.metrics:
                # Barometric altitude does not spike like strap/power sensors
                value = values[metric] if metric == "altitude" else self._inject_anomaly(values[metric])
                if value is not None:
                    record[metric] = round(float(value), 2)
            if c.record_distance:
                record["distance"] = round(distance, 1)
            if c.record_temperature:
                record["temperature"] = round(c.ambient_temperature + 2.0 * np.sin(2 * np.pi * t / 7200.0), 1)

            records.append(record)

        return records

    def generate_source(self) -> Source:
        """Generate the recording as a Source."""
        return Source.from_records(self.config.name, self.generate_records(), reported_metrics=self.config.metrics)


def simulate_pair(seed: Optional[int] = None, duration_seconds: float = 3600.0) -> Tuple[Source, Source]:
    """
    Two overlapping recordings of the same ride: a bike computer with power,
    speed, cadence and altitude, and a watch with heart rate and altitude
    that starts later and samples every 2 seconds.

    Args:
        seed: Random seed for reproducible output
        duration_seconds: Length of the bike computer recording
    """
    bike = ActivitySimulator(RideConfiguration(
        name="Bike Computer",
        duration_seconds=duration_seconds,
        metrics=("power", "speed", "cadence", "altitude"),
        seed=seed,
    ))
    watch = ActivitySimulator(RideConfiguration(
        name="Watch",
        start_offset_seconds=duration_seconds * 0.1,
        duration_seconds=duration_seconds * 0.8,
        sample_interval_seconds=2.0,
        metrics=("heart_rate", "altitude"),
        record_distance=False,
        seed=None if seed is None else seed + 1,
    ))
    return bike.generate_source(), watch.generate_source()


if __name__ == "__main__":
    bike, watch = simulate_pair(seed=42, duration_seconds=600)
    print(f"{bike.name}: {len(bike)} samples, metrics {sorted(m.value for m in bike.available_metrics)}")
    print(f"{watch.name}: {len(watch)} samples, metrics {sorted(m.value for m in watch.available_metrics)}")
