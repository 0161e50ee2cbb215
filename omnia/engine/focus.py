"""
Focus Configuration Registry

Static table of the dashboard's focus views. Each entry declares what a view
plots and how it is presented:
- Display label and description
- Series list, each bound to a Sample field, a color and an axis
- Spotlight metric (and optional secondary spotlight) for headline summaries
- Per-axis domain rules and tick formatters
- Value formatting rules shared by summary display and axis ticks

Strategies are carried as data (plain functions stored on the entry), so the
registry is a lookup and never branches on the mode.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from .domains import DomainRule, FixedDomain, build_dynamic_domain

Formatter = Callable[[float], str]

PLACEHOLDER = "—"


class FocusMode(Enum):
    SLEEP = "sleep"
    STRESS = "stress"
    HEART_RATE = "heart-rate"
    OXYGENATION = "oxygenation"


DEFAULT_FOCUS_MODE = FocusMode.SLEEP


@dataclass(frozen=True)
class SeriesConfig:
    """
    One plotted series.

    Attributes:
        key: Sample field plotted by the series
        label: Legend label
        color: Color token handed to the rendering layer
        axis: "left" or "right"
    """
    key: str
    label: str
    color: str
    axis: str = "left"


@dataclass(frozen=True)
class FocusConfig:
    """Everything one focus view needs to be computed and formatted."""
    label: str
    description: str
    spotlight_key: str
    series: Tuple[SeriesConfig, ...]
    unit: Optional[str] = None
    precision: Optional[int] = None
    formatter: Optional[Formatter] = None
    domains: Dict[str, Union[FixedDomain, DomainRule]] = field(default_factory=dict)
    axis_formatters: Dict[str, Formatter] = field(default_factory=dict)
    secondary_spotlight_key: Optional[str] = None
    secondary_label: Optional[str] = None
    secondary_unit: Optional[str] = None
    secondary_precision: Optional[int] = None
    secondary_formatter: Optional[Formatter] = None


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_locale_number(value: float) -> str:
    """Thousands separators and at most three decimals ("12,345.5")."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_sleep_duration(minutes: Optional[float]) -> str:
    """Format minutes slept as "7h 05m"."""
    if _is_missing(minutes):
        return PLACEHOLDER
    total = int(math.floor(minutes + 0.5))
    hours, mins = divmod(total, 60)
    return f"{hours}h {mins:02d}m"


def format_metric_value(
    value: Optional[float],
    unit: Optional[str] = None,
    precision: Optional[int] = None,
    formatter: Optional[Formatter] = None,
) -> str:
    """
    Format a metric value for display.

    An explicit formatter wins, then a fixed decimal precision, then the
    default thousands-separated rendering. The unit is appended unless a
    formatter is used.
    """
    if _is_missing(value):
        return PLACEHOLDER
    if formatter is not None:
        return formatter(value)

    suffix = f" {unit}" if unit else ""
    if precision is not None:
        return f"{value:.{precision}f}{suffix}"
    return f"{format_locale_number(value)}{suffix}"


def format_delta_label(delta: float, unit: Optional[str] = None) -> str:
    """Format the size of a change (the sign is shown separately)."""
    absolute = abs(delta)
    if unit == "%":
        return f"{absolute:.1f}%"
    if unit == "bpm":
        return f"{absolute:.0f} bpm"
    if unit == "pts":
        return f"{absolute:.0f} pts"
    return f"{format_locale_number(absolute)}{f' {unit}' if unit else ''}"


def format_axis_tick(config: FocusConfig, axis: str, value: float) -> str:
    """Format an axis tick with the axis formatter, or the default rendering."""
    formatter = config.axis_formatters.get(axis)
    if formatter is not None:
        return formatter(value)
    return format_locale_number(value)


def _hours_tick(value: float) -> str:
    return f"{int(math.floor(value / 60 + 0.5))}h"


def _whole_tick(value: float) -> str:
    return f"{value:.0f}"


FOCUS_CONFIGS: Dict[FocusMode, FocusConfig] = {
    FocusMode.SLEEP: FocusConfig(
        label="Sleep quality",
        description="Minutes slept alongside the nightly recovery score.",
        unit="min",
        spotlight_key="sleep_minutes",
        formatter=format_sleep_duration,
        secondary_spotlight_key="sleep_score",
        secondary_label="Sleep score",
        secondary_unit="pts",
        secondary_precision=0,
        series=(
            SeriesConfig("sleep_minutes", "Sleep minutes", "var(--color-chart-1)", "left"),
            SeriesConfig("sleep_score", "Sleep score", "var(--color-chart-3)", "right"),
        ),
        domains={
            # Keep the axis within 4h-10h of sleep
            "left": build_dynamic_domain(padding=20, floor=240, ceil=600),
            "right": FixedDomain(min=0, max=100),
        },
        axis_formatters={
            "left": _hours_tick,
            "right": _whole_tick,
        },
    ),
    FocusMode.STRESS: FocusConfig(
        label="Stress readiness",
        description="Daily stress score across the selected window.",
        unit="pts",
        spotlight_key="stress_score",
        series=(
            SeriesConfig("stress_score", "Stress score", "var(--color-chart-2)"),
        ),
        domains={"left": FixedDomain(min=0, max=100)},
        axis_formatters={"left": _whole_tick},
    ),
    FocusMode.HEART_RATE: FocusConfig(
        label="Heart rate details",
        description="Track min/avg/max heart rate to spot recovery trends.",
        unit="bpm",
        spotlight_key="heart_rate_mean",
        series=(
            SeriesConfig("heart_rate_min", "Min bpm", "var(--color-chart-2)"),
            SeriesConfig("heart_rate_mean", "Avg bpm", "var(--color-chart-1)"),
            SeriesConfig("heart_rate_max", "Max bpm", "var(--color-chart-3)"),
        ),
        domains={"left": FixedDomain(min=50, max=110)},
        axis_formatters={"left": _whole_tick},
    ),
    FocusMode.OXYGENATION: FocusConfig(
        label="Oxygenation details",
        description="Monitor SpO₂ stability and catch dips quickly.",
        unit="%",
        precision=1,
        spotlight_key="spo2_mean",
        formatter=lambda value: f"{value:.1f} %",
        series=(
            SeriesConfig("spo2_min", "Min SpO₂", "var(--color-chart-3)"),
            SeriesConfig("spo2_mean", "Avg SpO₂", "var(--color-chart-1)"),
            SeriesConfig("spo2_max", "Max SpO₂", "var(--color-chart-2)"),
        ),
        domains={"left": FixedDomain(min=92, max=100)},
        axis_formatters={"left": lambda value: f"{value:.1f}%"},
    ),
}

# Steps/calories comparison chart, shown under every focus view
STEPS_CALORIES_SERIES: Tuple[SeriesConfig, ...] = (
    SeriesConfig("steps", "Steps", "var(--color-chart-4)", "left"),
    SeriesConfig("calories", "Calories", "var(--color-chart-5)", "right"),
)
STEPS_PADDING = 500
CALORIES_PADDING = 100


def parse_focus_mode(value: Union[str, FocusMode]) -> FocusMode:
    """
    Parse a focus mode identifier ("sleep", "heart-rate", ...).

    Raises:
        ValueError: If the value names no known focus mode
    """
    if isinstance(value, FocusMode):
        return value
    return FocusMode(str(value).strip().lower())


def config_for(mode: Union[str, FocusMode]) -> FocusConfig:
    """
    Look up the configuration of a focus mode.

    Raises:
        KeyError: If the mode is unknown
    """
    try:
        return FOCUS_CONFIGS[parse_focus_mode(mode)]
    except ValueError:
        raise KeyError(f"Unknown focus mode: {mode}")
