"""
Data models for daily health samples and computed summaries.

Defines the canonical sample schema the whole pipeline reads from, plus the
per-metric summary records handed to the rendering layer.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


# Canonical numeric fields carried by every sample, in display order
METRIC_FIELDS: Tuple[str, ...] = (
    "heart_rate_mean",
    "heart_rate_min",
    "heart_rate_max",
    "spo2_mean",
    "spo2_min",
    "spo2_max",
    "steps",
    "sleep_minutes",
    "sleep_score",
    "stress_score",
    "calories",
)


@dataclass(frozen=True)
class Sample:
    """
    One observation for one day of the export.

    Numeric fields are finite floats, or None when the value is absent
    (an empty cell is never read as zero).

    Attributes:
        timestamp: When the observation was recorded (ordering key)
        heart_rate_mean: Mean heart rate (bpm)
        heart_rate_min: Minimum heart rate (bpm)
        heart_rate_max: Maximum heart rate (bpm)
        spo2_mean: Mean blood oxygenation (%)
        spo2_min: Minimum blood oxygenation (%)
        spo2_max: Maximum blood oxygenation (%)
        steps: Daily step count
        sleep_minutes: Minutes slept
        sleep_score: Sleep score (1-100)
        stress_score: Stress score (0-100)
        calories: Energy expenditure (kcal)
    """
    timestamp: datetime
    heart_rate_mean: Optional[float] = None
    heart_rate_min: Optional[float] = None
    heart_rate_max: Optional[float] = None
    spo2_mean: Optional[float] = None
    spo2_min: Optional[float] = None
    spo2_max: Optional[float] = None
    steps: Optional[float] = None
    sleep_minutes: Optional[float] = None
    sleep_score: Optional[float] = None
    stress_score: Optional[float] = None
    calories: Optional[float] = None

    def value(self, key: str) -> Optional[float]:
        """Return the value of a metric field by name."""
        if key not in METRIC_FIELDS:
            raise KeyError(f"Unknown metric field: {key}")
        return getattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict with an ISO timestamp."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class MetricSummary:
    """
    Headline statistics for one metric over the active window.

    None means there was not enough data, never zero.

    Attributes:
        latest: Value on the last sample of the window
        change: latest minus the value on the first sample (positive = increase)
        average: Mean over the window, rounded to the nearest integer
    """
    latest: Optional[float] = None
    change: Optional[float] = None
    average: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FocusSummary:
    """Spotlight summaries for one focus mode."""
    primary: MetricSummary
    secondary: Optional[MetricSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
        }
