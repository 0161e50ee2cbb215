"""
Window Selector

Selects the trailing run of samples shown by the dashboard. The window is
anchored at the most recent recorded sample, not at "now", so a stale export
still shows its last N days.
"""

from datetime import timedelta
from enum import Enum
from typing import Sequence, Tuple, Union

import structlog

from .models import Sample

logger = structlog.get_logger()


class Timeframe(Enum):
    """Selectable window lengths."""
    LAST_7_DAYS = "7d"
    LAST_14_DAYS = "14d"
    LAST_30_DAYS = "30d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    @property
    def label(self) -> str:
        return f"Last {self.days} days"


DEFAULT_TIMEFRAME = Timeframe.LAST_14_DAYS


def parse_timeframe(value: Union[str, int, Timeframe]) -> Timeframe:
    """
    Parse a timeframe identifier.

    Accepts a Timeframe, its string value ("7d", "14d", "30d") or the
    number of days (7, 14, 30).

    Raises:
        ValueError: If the value names no known timeframe
    """
    if isinstance(value, Timeframe):
        return value

    if isinstance(value, int) and not isinstance(value, bool):
        for timeframe in Timeframe:
            if timeframe.days == value:
                return timeframe
        raise ValueError(f"Unknown timeframe: {value} days")

    text = str(value).strip().lower()
    if text.isdigit():
        return parse_timeframe(int(text))
    return Timeframe(text)


def select_window(
    samples: Sequence[Sample],
    timeframe: Union[Timeframe, int]
) -> Tuple[Sample, ...]:
    """
    Select the trailing window of samples.

    The window runs from (anchor - (days - 1) days) to the anchor, both
    inclusive, where the anchor is the timestamp of the last sample.

    Args:
        samples: Time-ordered samples (a SampleStore or any sequence)
        timeframe: Timeframe or a positive number of days

    Returns:
        The samples inside the window, in store order

    Raises:
        ValueError: If a number of days below 1 is given
    """
    if isinstance(timeframe, Timeframe):
        days = timeframe.days
    else:
        days = int(timeframe)
        if days < 1:
            raise ValueError(f"Timeframe must cover at least one day, got {days}")

    if not samples:
        return ()

    end_dt = samples[-1].timestamp
    start_dt = end_dt - timedelta(days=days - 1)

    window = tuple(
        s for s in samples
        if start_dt <= s.timestamp <= end_dt
    )

    logger.debug(
        "window_selected",
        days=days,
        start=start_dt.isoformat(),
        end=end_dt.isoformat(),
        rows_before=len(samples),
        rows_after=len(window),
    )
    return window


def format_active_range(window: Sequence[Sample]) -> str:
    """Human label for the window, e.g. "Jan 5 – Jan 18"."""
    if not window:
        return "No data"

    first = window[0].timestamp
    last = window[-1].timestamp
    return f"{first.strftime('%b')} {first.day} – {last.strftime('%b')} {last.day}"
