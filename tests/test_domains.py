import pytest

from omnia.engine.domains import (
    FixedDomain,
    active_axes,
    axis_key_map,
    build_dynamic_domain,
    collect_axis_values,
    padded_range,
    resolve_axis_domain,
    resolve_axis_domains,
)
from omnia.engine.focus import FocusConfig, FocusMode, SeriesConfig, config_for

from conftest import make_sample


def steps_config(domains=None) -> FocusConfig:
    return FocusConfig(
        label="Steps",
        description="",
        spotlight_key="steps",
        series=(SeriesConfig("steps", "Steps", "var(--color-chart-4)"),),
        domains=domains or {},
    )


def steps_samples(*values):
    return [make_sample(i + 1, steps=v) for i, v in enumerate(values)]


class TestAutoDomain:
    def test_constant_series_gets_flat_padding(self):
        domain = resolve_axis_domain("left", steps_config(), steps_samples(50, 50, 50), ["steps"])
        assert domain == (45, 55)
        assert domain[1] - domain[0] >= 5

    def test_pads_ten_percent_of_range(self):
        domain = resolve_axis_domain("left", steps_config(), steps_samples(60, 80), ["steps"])
        assert domain == pytest.approx((58, 82))

    def test_padding_is_at_least_one(self):
        domain = resolve_axis_domain("left", steps_config(), steps_samples(60, 65), ["steps"])
        assert domain == pytest.approx((59, 66))

    def test_empty_window(self):
        assert resolve_axis_domain("left", steps_config(), [], ["steps"]) == (0, 0)

    def test_absent_values_are_excluded(self):
        samples = steps_samples(None, 100, None)
        assert resolve_axis_domain("left", steps_config(), samples, ["steps"]) == (95, 105)
        assert resolve_axis_domain("left", steps_config(), steps_samples(None), ["steps"]) == (0, 0)

    @pytest.mark.parametrize("values", [
        (0,), (1, 1), (-3, 7), (0.1, 0.2), (96.5, 96.5, 96.6), (10000, 0),
    ])
    def test_never_degenerate(self, values):
        low, high = resolve_axis_domain("left", steps_config(), steps_samples(*values), ["steps"])
        assert low < high


class TestConfiguredDomain:
    def test_fixed_bounds_override_both_sides(self):
        config = steps_config({"left": FixedDomain(min=0, max=100)})
        assert resolve_axis_domain("left", config, steps_samples(40, 60), ["steps"]) == (0, 100)

    def test_fixed_bound_overrides_one_side(self):
        config = steps_config({"left": FixedDomain(min=0)})
        assert resolve_axis_domain("left", config, steps_samples(40, 60), ["steps"]) == (0, 62)

    def test_fixed_bounds_without_data(self):
        config = steps_config({"left": FixedDomain(min=0, max=100)})
        assert resolve_axis_domain("left", config, [], ["steps"]) == (0, 0)

    def test_rule_function_is_delegated(self):
        calls = []

        def rule(samples, keys):
            calls.append((len(samples), list(keys)))
            return (1, 2)

        config = steps_config({"left": rule})
        assert resolve_axis_domain("left", config, steps_samples(5, 6), ["steps"]) == (1, 2)
        assert calls == [(2, ["steps"])]


class TestDynamicDomain:
    def test_minimum_padding(self):
        rule = build_dynamic_domain(padding=20, floor=240, ceil=600)
        assert rule(steps_samples(420, 430), ["steps"]) == (400, 450)

    def test_clamped_into_band(self):
        rule = build_dynamic_domain(padding=20, floor=240, ceil=600)
        assert rule(steps_samples(200, 700), ["steps"]) == (240, 600)

    def test_values_above_band_stay_ordered(self):
        rule = build_dynamic_domain(padding=20, floor=240, ceil=600)
        assert rule(steps_samples(651, 657), ["steps"]) == (580, 600)

    def test_values_below_band_stay_ordered(self):
        rule = build_dynamic_domain(padding=20, floor=240, ceil=600)
        assert rule(steps_samples(200, 210), ["steps"]) == (240, 260)

    def test_five_percent_padding_for_wide_ranges(self):
        rule = build_dynamic_domain(padding=1)
        assert rule(steps_samples(0, 1000), ["steps"]) == pytest.approx((-50, 1050))

    def test_empty_inputs(self):
        rule = build_dynamic_domain()
        assert rule([], ["steps"]) == (0, 0)
        assert rule(steps_samples(1, 2), []) == (0, 0)
        assert rule(steps_samples(None, None), ["steps"]) == (0, 0)


class TestAxes:
    def test_sleep_axes(self):
        config = config_for(FocusMode.SLEEP)
        assert axis_key_map(config) == {"left": ["sleep_minutes"], "right": ["sleep_score"]}
        assert active_axes(config) == ["left", "right"]

    def test_series_default_to_left_axis(self):
        config = config_for(FocusMode.HEART_RATE)
        assert axis_key_map(config) == {
            "left": ["heart_rate_min", "heart_rate_mean", "heart_rate_max"],
        }

    def test_no_series_means_left_axis(self):
        config = FocusConfig(label="", description="", spotlight_key="steps", series=())
        assert active_axes(config) == ["left"]
        assert resolve_axis_domains(config, steps_samples(1)) == {}

    def test_collects_every_key(self):
        samples = [make_sample(1, heart_rate_min=50, heart_rate_max=120)]
        values = collect_axis_values(samples, ["heart_rate_min", "heart_rate_mean", "heart_rate_max"])
        assert sorted(values) == [50, 120]

    def test_sleep_domains(self):
        samples = [make_sample(1, sleep_minutes=420, sleep_score=80)]
        domains = resolve_axis_domains(config_for("sleep"), samples)
        assert domains == {"left": (400, 440), "right": (0, 100)}


class TestPaddedRange:
    def test_pads_both_sides(self):
        assert padded_range([1000, 2000], 500) == (500, 2500)

    def test_floor_at_zero(self):
        assert padded_range([200], 500) == (0, 700)

    def test_no_values(self):
        assert padded_range([], 100) is None
        assert padded_range([None], 100) is None
