"""
Dashboard Orchestrator

Runs the analytics pipeline for one (timeframe, focus mode) selection:
1. Window selection (trailing N days of the store)
2. Chart data projection for the focus series
3. Axis domain resolution
4. Spotlight summaries
5. Steps/calories comparison data and domains

Views are pure functions of the two selectors and are memoized per store, so
switching back and forth between selections costs nothing after the first
computation.
"""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .domains import (
    Domain,
    active_axes,
    axis_key_map,
    padded_range,
    resolve_axis_domains,
)
from .focus import (
    CALORIES_PADDING,
    DEFAULT_FOCUS_MODE,
    STEPS_CALORIES_SERIES,
    STEPS_PADDING,
    FocusConfig,
    FocusMode,
    config_for,
    format_axis_tick,
    format_delta_label,
    format_metric_value,
    parse_focus_mode,
)
from .models import FocusSummary, MetricSummary, Sample
from .sample_store import SampleStore
from .summary import build_summary_cards, summarize_focus
from .window import (
    DEFAULT_TIMEFRAME,
    Timeframe,
    format_active_range,
    parse_timeframe,
    select_window,
)

logger = structlog.get_logger()

# Number of (timeframe, focus) views kept per dashboard
VIEW_CACHE_SIZE = 32


@dataclass(frozen=True)
class DashboardView:
    """Everything the rendering layer needs for one selection."""
    timeframe: Timeframe
    focus_mode: FocusMode
    config: FocusConfig
    window: Tuple[Sample, ...]
    chart_data: Tuple[Dict[str, Any], ...]
    axes: Tuple[str, ...]
    axis_domains: Dict[str, Domain]
    summary: Optional[FocusSummary]
    steps_calories_data: Tuple[Dict[str, Any], ...]
    steps_calories_domains: Dict[str, Optional[Domain]]

    @property
    def active_range_label(self) -> str:
        return format_active_range(self.window)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation of the view."""
        config = self.config
        return {
            "timeframe": {"value": self.timeframe.value, "label": self.timeframe.label},
            "focus": {
                "mode": self.focus_mode.value,
                "label": config.label,
                "description": config.description,
                "unit": config.unit,
                "series": [
                    {"key": s.key, "label": s.label, "color": s.color, "axis": s.axis}
                    for s in config.series
                ],
            },
            "has_data": bool(self.window),
            "active_range_label": self.active_range_label,
            "samples": [s.to_dict() for s in self.window],
            "chart_data": list(self.chart_data),
            "axes": [
                {
                    "axis": axis,
                    "keys": axis_key_map(config).get(axis, []),
                    "domain": list(self.axis_domains[axis]) if axis in self.axis_domains else None,
                    "ticks": _domain_ticks(config, axis, self.axis_domains.get(axis)),
                }
                for axis in self.axes
            ],
            "summary": _summary_to_dict(config, self.summary),
            "steps_calories": {
                "series": [
                    {"key": s.key, "label": s.label, "color": s.color, "axis": s.axis}
                    for s in STEPS_CALORIES_SERIES
                ],
                "chart_data": list(self.steps_calories_data),
                "domains": {
                    axis: list(domain) if domain is not None else None
                    for axis, domain in self.steps_calories_domains.items()
                },
            },
        }


def _domain_ticks(config: FocusConfig, axis: str, domain: Optional[Domain]) -> List[str]:
    """Formatted labels for the two ends of an axis."""
    if domain is None:
        return []
    return [format_axis_tick(config, axis, value) for value in domain]


def _metric_block(
    summary: MetricSummary,
    label: str,
    unit: Optional[str],
    precision: Optional[int],
    formatter,
) -> Dict[str, Any]:
    data = summary.to_dict()
    data["label"] = label
    data["latest_display"] = format_metric_value(summary.latest, unit, precision, formatter)
    data["average_display"] = format_metric_value(summary.average, unit, precision, formatter)
    data["change_display"] = (
        format_delta_label(summary.change, unit) if summary.change is not None else None
    )
    return data


def _summary_to_dict(config: FocusConfig, summary: Optional[FocusSummary]) -> Optional[Dict[str, Any]]:
    if summary is None:
        return None

    result = {
        "primary": _metric_block(
            summary.primary,
            config.label,
            config.unit,
            config.precision,
            config.formatter,
        ),
        "secondary": None,
    }
    if summary.secondary is not None:
        result["secondary"] = _metric_block(
            summary.secondary,
            config.secondary_label or config.secondary_spotlight_key,
            config.secondary_unit,
            config.secondary_precision,
            config.secondary_formatter,
        )
    return result


def _date_key(timestamp: datetime) -> str:
    if timestamp.hour == timestamp.minute == timestamp.second == timestamp.microsecond == 0:
        return timestamp.date().isoformat()
    return timestamp.isoformat()


def project_series(window: Sequence[Sample], keys: Sequence[str]) -> Tuple[Dict[str, Any], ...]:
    """
    Project windowed samples onto chart rows: {"date": ..., key: value, ...}.

    Absent values stay None so charts show a gap instead of a zero.
    """
    return tuple(
        {"date": _date_key(sample.timestamp), **{key: sample.value(key) for key in keys}}
        for sample in window
    )


def compute_view(
    samples: Sequence[Sample],
    timeframe: Union[str, int, Timeframe] = DEFAULT_TIMEFRAME,
    focus_mode: Union[str, FocusMode] = DEFAULT_FOCUS_MODE,
) -> DashboardView:
    """
    Compute the dashboard view for one selection.

    Args:
        samples: Time-ordered samples (usually a SampleStore)
        timeframe: Timeframe identifier ("7d", "14d", "30d")
        focus_mode: Focus mode identifier ("sleep", "stress", ...)

    Returns:
        DashboardView. An empty store gives a view with empty chart data,
        (0, 0) focus domains and no summary.

    Raises:
        ValueError: If the timeframe or focus mode is unknown
    """
    timeframe = parse_timeframe(timeframe)
    focus_mode = parse_focus_mode(focus_mode)
    config = config_for(focus_mode)

    # Step 1: Window selection
    window = select_window(samples, timeframe)

    # Step 2: Chart data for the focus series
    chart_data = project_series(window, [s.key for s in config.series])

    # Step 3: Axis domains
    axis_domains = resolve_axis_domains(config, window)

    # Step 4: Spotlight summaries
    summary = summarize_focus(window, config)

    # Step 5: Steps/calories comparison
    steps_calories_data = project_series(window, [s.key for s in STEPS_CALORIES_SERIES])
    steps_calories_domains = {
        "left": padded_range((s.steps for s in window), STEPS_PADDING),
        "right": padded_range((s.calories for s in window), CALORIES_PADDING),
    }

    logger.debug(
        "dashboard_view_computed",
        timeframe=timeframe.value,
        focus_mode=focus_mode.value,
        window=len(window),
    )

    return DashboardView(
        timeframe=timeframe,
        focus_mode=focus_mode,
        config=config,
        window=window,
        chart_data=chart_data,
        axes=tuple(active_axes(config)),
        axis_domains=axis_domains,
        summary=summary,
        steps_calories_data=steps_calories_data,
        steps_calories_domains=steps_calories_domains,
    )


class Dashboard:
    """
    Read-only dashboard over one Sample Store.

    view() is memoized on (timeframe, focus mode); the store never changes,
    so cached views never go stale.
    """

    def __init__(self, store: SampleStore):
        self.store = store
        self._cached_view = lru_cache(maxsize=VIEW_CACHE_SIZE)(self._compute)

    def _compute(self, timeframe: Timeframe, focus_mode: FocusMode) -> DashboardView:
        return compute_view(self.store, timeframe, focus_mode)

    def view(
        self,
        timeframe: Union[str, int, Timeframe] = DEFAULT_TIMEFRAME,
        focus_mode: Union[str, FocusMode] = DEFAULT_FOCUS_MODE,
    ) -> DashboardView:
        # Normalize first so "14d" and Timeframe.LAST_14_DAYS share a cache entry
        return self._cached_view(parse_timeframe(timeframe), parse_focus_mode(focus_mode))

    def summary_cards(self) -> List[Dict[str, Any]]:
        return build_summary_cards(self.store)
