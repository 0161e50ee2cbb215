"""
Axis Domain Resolver

Computes the numeric [min, max] range shown on each chart axis.

An axis domain comes from one of three places:
- A domain rule function declared by the focus configuration (full control)
- Fixed bounds declared by the focus configuration (override per side)
- The data itself, padded so a flat series still gets a visible band

Values that are absent or not finite are left out. An axis without any
usable value resolves to (0, 0).
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Sample

Domain = Tuple[float, float]
DomainRule = Callable[[Sequence[Sample], Sequence[str]], Domain]

EMPTY_DOMAIN: Domain = (0, 0)

# Auto-computed domains: pad by 10% of the range, at least 1 unit, and by
# 5 units when every value is the same
AUTO_PADDING_RATIO = 0.1
AUTO_MIN_PADDING = 1.0
AUTO_FLAT_PADDING = 5.0

# Dynamic domains: pad by max(padding, 5% of the range)
DYNAMIC_PADDING_RATIO = 0.05
DEFAULT_DYNAMIC_PADDING = 10.0


@dataclass(frozen=True)
class FixedDomain:
    """
    Fixed axis bounds. A side left as None is computed from the data.
    """
    min: Optional[float] = None
    max: Optional[float] = None


def _is_finite_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def collect_axis_values(samples: Iterable[Sample], axis_keys: Sequence[str]) -> List[float]:
    """Every finite value of every metric key across the samples."""
    values = []
    for sample in samples:
        for key in axis_keys:
            value = sample.value(key)
            if _is_finite_number(value):
                values.append(value)
    return values


def axis_key_map(config) -> Dict[str, List[str]]:
    """
    Group the metric keys of a focus configuration by axis.

    Series without an axis go on the left. Axis order follows the first
    series that uses it.
    """
    mapping: Dict[str, List[str]] = {}
    for series in config.series:
        axis = series.axis or "left"
        mapping.setdefault(axis, []).append(series.key)
    return mapping


def active_axes(config) -> List[str]:
    """Axes used by a focus configuration; ["left"] when it declares none."""
    return list(axis_key_map(config)) or ["left"]


def build_dynamic_domain(
    padding: float = DEFAULT_DYNAMIC_PADDING,
    floor: float = -math.inf,
    ceil: float = math.inf,
) -> DomainRule:
    """
    Build a domain rule that pads the data range and clamps it into a band.

    The padding is max(padding, 5% of the range). Values outside [floor, ceil]
    are pulled to the nearest edge before padding, and the result is clamped
    into the band, so the axis never widens past it and min stays below max.

    Args:
        padding: Minimum padding on each side
        floor: Lowest value the axis may show
        ceil: Highest value the axis may show

    Returns:
        A function (samples, axis_keys) -> (min, max)
    """
    def rule(samples: Sequence[Sample], axis_keys: Sequence[str]) -> Domain:
        if not samples or not axis_keys:
            return EMPTY_DOMAIN

        values = collect_axis_values(samples, axis_keys)
        if not values:
            return EMPTY_DOMAIN

        # Clamp the data into the band first so values entirely outside it
        # still give min < max
        min_value = min(ceil, max(floor, min(values)))
        max_value = min(ceil, max(floor, max(values)))
        dynamic_padding = max(padding, (max_value - min_value) * DYNAMIC_PADDING_RATIO)

        return (
            max(floor, min_value - dynamic_padding),
            min(ceil, max_value + dynamic_padding),
        )

    return rule


def resolve_axis_domain(
    axis: str,
    config,
    samples: Sequence[Sample],
    axis_keys: Sequence[str],
) -> Domain:
    """
    Resolve the domain of one axis.

    Args:
        axis: "left" or "right"
        config: Focus configuration (its domains mapping is consulted)
        samples: Windowed samples
        axis_keys: Metric keys plotted on this axis

    Returns:
        (min, max) for the axis
    """
    domain_config = (config.domains or {}).get(axis)

    if callable(domain_config):
        return domain_config(samples, axis_keys)

    values = collect_axis_values(samples, axis_keys)
    if not values:
        return EMPTY_DOMAIN

    min_value = min(values)
    max_value = max(values)
    padding = max(
        AUTO_MIN_PADDING,
        (max_value - min_value) * AUTO_PADDING_RATIO or AUTO_FLAT_PADDING,
    )

    fixed_min = domain_config.min if domain_config is not None else None
    fixed_max = domain_config.max if domain_config is not None else None

    return (
        fixed_min if fixed_min is not None else min_value - padding,
        fixed_max if fixed_max is not None else max_value + padding,
    )


def resolve_axis_domains(config, samples: Sequence[Sample]) -> Dict[str, Domain]:
    """Resolve the domain of every axis a focus configuration plots on."""
    return {
        axis: resolve_axis_domain(axis, config, samples, keys)
        for axis, keys in axis_key_map(config).items()
        if keys
    }


def padded_range(
    values: Iterable[Optional[float]],
    padding: float,
    floor: float = 0,
) -> Optional[Domain]:
    """
    Pad the range of a single series by a fixed amount.

    Used by the steps/calories comparison. The lower bound never drops below
    floor. Returns None when there is no finite value.
    """
    finite = [v for v in values if _is_finite_number(v)]
    if not finite:
        return None
    return (max(floor, min(finite) - padding), max(finite) + padding)
