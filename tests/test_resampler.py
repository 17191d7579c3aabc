"""Tests for timeline construction and value resolution."""
import pytest

from fitmerge.processing.merger import merge_sources
from fitmerge.processing.metrics import MetricKind
from fitmerge.processing.resampler import (
    Bracket,
    MetricIndex,
    TimelineResampler,
    build_timeline,
    exact_match,
    interpolate,
    nearest_neighbor,
    one_sided_hold,
    resolve,
)
from fitmerge.processing.samples import Sample, Source

HR = MetricKind.HEART_RATE
POWER = MetricKind.POWER
GAP = 30_000


class TestBuildTimeline:
    @pytest.mark.parametrize("span", [0, 1, 999, 1000, 1500, 3_599_000, 3_600_000, 7_199_000, 10**8])
    def test_endpoints_and_budget(self, span, t0):
        timeline = build_timeline(t0, t0 + span, max_points=3600, min_step_ms=1000)
        assert timeline[0] == t0
        assert timeline[-1] == t0 + span
        assert len(timeline) <= 3600
        assert all(b > a for a, b in zip(timeline, timeline[1:]))

    def test_one_second_step_when_within_budget(self):
        assert list(build_timeline(0, 5000)) == [0, 1000, 2000, 3000, 4000, 5000]

    def test_final_step_may_be_shorter(self):
        assert list(build_timeline(0, 2500)) == [0, 1000, 2000, 2500]

    def test_two_hours_at_1hz_is_capped(self):
        timeline = build_timeline(0, 7_199_000, max_points=3600)
        assert 3500 < len(timeline) <= 3600

    def test_small_budget(self):
        timeline = build_timeline(0, 100_000, max_points=5)
        assert len(timeline) <= 5
        assert timeline[0] == 0 and timeline[-1] == 100_000


class TestStrategies:
    def test_exact_match(self):
        assert exact_match(Bracket(t=5, exact=3.5, before=(5, 3.5), after=(5, 3.5)), GAP) == 3.5
        assert exact_match(Bracket(t=5, before=(0, 1.0), after=(10, 2.0)), GAP) is None

    def test_interpolation_example(self):
        assert interpolate(Bracket(t=5000, before=(0, 100.0), after=(10_000, 140.0)), GAP) == 120.0

    def test_interpolation_exact_at_endpoints(self):
        before, after = (1000, 0.1), (4000, 0.7)
        assert interpolate(Bracket(t=1000, before=before, after=after), GAP) == 0.1
        assert interpolate(Bracket(t=4000, before=before, after=after), GAP) == 0.7

    def test_interpolation_monotonic(self):
        before, after = (0, 0.1), (29_000, 0.3)
        for t in range(0, 29_001, 1000):
            value = interpolate(Bracket(t=t, before=before, after=after), GAP)
            assert 0.1 <= value <= 0.3

    def test_interpolation_refused_beyond_gap(self):
        assert interpolate(Bracket(t=20_000, before=(0, 1.0), after=(40_000, 2.0)), GAP) is None

    def test_nearest_neighbor_within_gap(self):
        before, after = (0, 1.0), (100_000, 2.0)
        assert nearest_neighbor(Bracket(t=20_000, before=before, after=after), GAP) == 1.0
        assert nearest_neighbor(Bracket(t=80_000, before=before, after=after), GAP) == 2.0
        assert nearest_neighbor(Bracket(t=50_000, before=before, after=after), GAP) is None

    def test_nearest_neighbor_tie_prefers_before(self):
        assert nearest_neighbor(Bracket(t=20_000, before=(0, 1.0), after=(40_000, 2.0)), GAP) == 1.0

    def test_one_sided_hold(self):
        assert one_sided_hold(Bracket(t=30_000, before=(0, 1.0)), GAP) == 1.0
        assert one_sided_hold(Bracket(t=30_001, before=(0, 1.0)), GAP) is None
        assert one_sided_hold(Bracket(t=0, after=(10_000, 2.0)), GAP) == 2.0
        assert one_sided_hold(Bracket(t=0, before=(0, 1.0), after=(100_000, 2.0)), GAP) is None

    def test_chain_order(self):
        assert resolve(Bracket(t=0, exact=7.0, before=(0, 7.0), after=(0, 7.0))) == 7.0
        assert resolve(Bracket(t=5000, before=(0, 100.0), after=(10_000, 140.0))) == 120.0
        assert resolve(Bracket(t=10_000, before=(0, 1.0), after=(60_000, 2.0))) == 1.0
        assert resolve(Bracket(t=45_000, before=(0, 1.0))) is None
        assert resolve(Bracket(t=0)) is None


class TestMetricIndex:
    def test_vectorized_matches_scalar(self, source_factory, t0):
        source = source_factory("a", [(0, {"power": 100}), (3, {"power": 130}), (9, {"power": 90})])
        index = MetricIndex.from_pool(merge_sources([source]), POWER)
        timeline = [t0 - 1000, t0, t0 + 1500, t0 + 3000, t0 + 12_000]
        assert index.brackets(timeline) == [index.bracket(t) for t in timeline]

    def test_duplicate_timestamp_uses_first(self, t0):
        pool = merge_sources([
            Source("a", [Sample(t0, {HR: 120.0})]),
            Source("b", [Sample(t0, {HR: 150.0})]),
        ])
        assert MetricIndex.from_pool(pool, HR).bracket(t0).exact == 120.0

    def test_skips_invalid_values(self, source_factory):
        source = source_factory("a", [(0, {"heart_rate": 0}), (1, {"heart_rate": 140})])
        assert len(MetricIndex.from_pool(merge_sources([source]), HR)) == 1


class TestTimelineResampler:
    def test_empty_pool(self):
        assert TimelineResampler().resample(merge_sources([])) == []

    def test_interpolation_example(self, source_factory, t0):
        source = source_factory("a", [(0, {"heart_rate": 100}), (10, {"heart_rate": 140})])
        frames = TimelineResampler().resample(merge_sources([source]))

        assert len(frames) == 11
        by_time = {f.timestamp - t0: f.get(HR) for f in frames}
        assert by_time[5000] == 120.0
        assert by_time[0] == 100.0
        assert by_time[10_000] == 140.0

    def test_exact_match_is_bit_for_bit(self, t0):
        value = 0.1 + 0.2
        pool = merge_sources([Source("a", [Sample(t0, {POWER: value}), Sample(t0 + 2000, {POWER: 1.0})])])
        frames = TimelineResampler().resample(pool)
        assert frames[0].get(POWER) == value

    def test_non_overlapping_sources_never_fabricate_zero(self, source_factory, t0):
        a = source_factory("a", [(s, {"power": 200 + s}) for s in range(0, 61)])
        b = source_factory("b", [(s, {"heart_rate": 140}) for s in range(200, 261)])
        frames = TimelineResampler().resample(merge_sources([a, b]))

        for frame in frames:
            offset = (frame.timestamp - t0) / 1000
            if offset > 90:
                assert frame.get(POWER) is None
            if offset < 170:
                assert frame.get(HR) is None
            assert frame.get(POWER) != 0
            assert frame.get(HR) != 0
        assert {POWER, HR} == set(frames[0].values)

    def test_unavailable_metric_omitted(self, source_factory):
        source = source_factory("a", [(0, {"power": 100}), (5, {"power": 120})])
        frames = TimelineResampler().resample(merge_sources([source]))
        assert all(set(f.values) == {POWER} for f in frames)

    def test_budget_respected_for_dense_input(self, t0):
        samples = [Sample(t0 + i * 250, {POWER: 200.0}) for i in range(40_000)]
        frames = TimelineResampler(max_points=1000).resample(merge_sources([Source("a", samples)]))
        assert len(frames) <= 1000
        assert frames[0].timestamp == t0
        assert frames[-1].timestamp == samples[-1].timestamp

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            TimelineResampler(max_points=1)
        with pytest.raises(ValueError):
            TimelineResampler(max_gap_ms=-1)
