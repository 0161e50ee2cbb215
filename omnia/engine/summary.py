"""
Summary Aggregator

Computes the headline numbers shown next to the charts:
- Per-metric summaries over the active window (latest, change, average)
- Spotlight summaries for a focus view
- Summary cards over the whole observation history
"""

import math
import statistics
from typing import Any, Dict, List, Optional, Sequence

from .focus import (
    PLACEHOLDER,
    FocusConfig,
    format_delta_label,
    format_locale_number,
    format_sleep_duration,
)
from .models import FocusSummary, MetricSummary, Sample


def _finite(value) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return value
    return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def average_of(samples: Sequence[Sample], key: str) -> Optional[int]:
    """Mean of the finite values of one metric, rounded half-up; None when there are none."""
    present = [v for v in (_finite(s.value(key)) for s in samples) if v is not None]
    if not present:
        return None
    return round_half_up(statistics.fmean(present))


def summarize(window: Sequence[Sample], key: str) -> MetricSummary:
    """
    Summarize one metric over a window.

    Args:
        window: Windowed samples, in time order
        key: Sample field to summarize

    Returns:
        MetricSummary where:
        - latest is the value on the last sample
        - change is latest minus the value on the first sample, only when the
          window holds more than one sample and both ends are present
        - average is the mean of the present values, rounded to an integer
        Every field is None when there is not enough data.
    """
    if not window:
        return MetricSummary()

    latest = _finite(window[-1].value(key))
    first = _finite(window[0].value(key))

    change = None
    if len(window) > 1 and latest is not None and first is not None:
        change = latest - first

    average = average_of(window, key)

    return MetricSummary(latest=latest, change=change, average=average)


def summarize_focus(window: Sequence[Sample], config: FocusConfig) -> Optional[FocusSummary]:
    """Summarize the spotlight metric(s) of a focus view; None for an empty window."""
    if not window:
        return None

    secondary = None
    if config.secondary_spotlight_key:
        secondary = summarize(window, config.secondary_spotlight_key)

    return FocusSummary(
        primary=summarize(window, config.spotlight_key),
        secondary=secondary,
    )


def _delta(latest: Optional[Sample], previous: Optional[Sample], key: str) -> Optional[float]:
    if latest is None or previous is None:
        return None
    current = _finite(latest.value(key))
    before = _finite(previous.value(key))
    if current is None or before is None:
        return None
    return current - before


def _card_delta(delta: Optional[float], unit: str) -> Optional[Dict[str, Any]]:
    if delta is None:
        return None
    return {
        "value": delta,
        "direction": "up" if delta >= 0 else "down",
        "label": f"{format_delta_label(delta, unit)} vs previous day",
    }


def build_summary_cards(samples: Sequence[Sample]) -> List[Dict[str, Any]]:
    """
    Build the headline cards from the whole observation history.

    The heart rate and oxygenation cards compare the latest sample with the
    one before it; steps and sleep show history-wide averages.
    """
    latest = samples[-1] if samples else None
    previous = samples[-2] if len(samples) > 1 else None

    def latest_value(key: str) -> Optional[float]:
        return _finite(latest.value(key)) if latest is not None else None

    waiting = "Waiting for device sync"

    hr_mean = latest_value("heart_rate_mean")
    hr_min = latest_value("heart_rate_min")
    hr_max = latest_value("heart_rate_max")
    spo2_mean = latest_value("spo2_mean")
    spo2_min = latest_value("spo2_min")
    spo2_max = latest_value("spo2_max")

    average_steps = average_of(samples, "steps")
    average_sleep = average_of(samples, "sleep_minutes")

    return [
        {
            "id": "heart-rate",
            "title": "Average heart rate",
            "value": f"{format_locale_number(hr_mean)} bpm" if hr_mean is not None else PLACEHOLDER,
            "helper": (
                f"Range {format_locale_number(hr_min)} – {format_locale_number(hr_max)} bpm"
                if hr_min is not None and hr_max is not None
                else waiting
            ),
            "delta": _card_delta(_delta(latest, previous, "heart_rate_mean"), "bpm"),
            "unit": "bpm",
        },
        {
            "id": "oxygenation",
            "title": "Blood oxygenation",
            "value": f"{spo2_mean:.1f}%" if spo2_mean is not None else PLACEHOLDER,
            "helper": (
                f"Min {spo2_min:.1f}% • Max {spo2_max:.1f}%"
                if spo2_min is not None and spo2_max is not None
                else waiting
            ),
            "delta": _card_delta(_delta(latest, previous, "spo2_mean"), "%"),
            "unit": "%",
        },
        {
            "id": "steps",
            "title": "Daily steps (average)",
            "value": format_locale_number(average_steps) if average_steps else PLACEHOLDER,
            "helper": f"Across {len(samples)} recorded days",
            "delta": None,
            "unit": "steps",
        },
        {
            "id": "sleep",
            "title": "Sleep duration",
            "value": format_sleep_duration(latest_value("sleep_minutes")),
            "helper": f"Average {format_sleep_duration(average_sleep)}",
            "delta": None,
            "unit": "minutes",
        },
    ]
