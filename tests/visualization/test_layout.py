"""
Timeline Layout Tests

Verifies the geometry the SVG writer relies on:
- Linear time scale over the resolved window
- Clipping of intervals that cross the window edges
- Sub-lane stacking for overlapping intervals
- Lane, axis and legend placement
"""

import pytest

from repaint_timeline.contracts.base import ConfigError, ErrorCode
from repaint_timeline.contracts.events import TimeWindow
from repaint_timeline.engine import interpret
from repaint_timeline.temporal.graph import TimelineGraph
from repaint_timeline.visualization.layout import (
    LayoutConfig, TimeScale, TimelineLayout, assign_sub_lanes,
    choose_tick_step, resolve_window, tick_positions
)
from tests.fixtures import SINGLE_REPAINT, TWO_OUTPUTS, begin, end, info, instant


def layout(records, window=None, config=None):
    return TimelineLayout(config).compute(interpret(records), window)


class TestTimeScale:

    def test_linear_mapping(self):
        scale = TimeScale(from_ms=100, to_ms=300, origin_x=20, plot_width=1000)
        assert scale.pixel_x(100) == 20
        assert scale.pixel_x(200) == 520
        assert scale.pixel_x(300) == 1020

    def test_degenerate_window_does_not_divide_by_zero(self):
        scale = TimeScale(from_ms=7, to_ms=7, origin_x=20, plot_width=1000)
        assert scale.span == 1
        assert scale.pixel_x(7) == 20


class TestResolveWindow:

    def _graph(self):
        return interpret(TWO_OUTPUTS)

    def test_unset_bounds_come_from_data(self):
        assert resolve_window(self._graph(), TimeWindow()) == (0, 30)
        assert resolve_window(self._graph(), None) == (0, 30)

    def test_partial_bounds(self):
        assert resolve_window(self._graph(), TimeWindow(from_ms=5)) == (5, 30)
        assert resolve_window(self._graph(), TimeWindow(to_ms=12)) == (0, 12)

    def test_empty_graph(self):
        graph = TimelineGraph()
        graph.finalize()
        assert resolve_window(graph, TimeWindow()) == (0, 0)
        assert resolve_window(graph, TimeWindow(to_ms=50)) == (50, 50)

    def test_from_after_observed_max(self):
        with pytest.raises(ConfigError) as exc:
            resolve_window(self._graph(), TimeWindow(from_ms=100))
        assert exc.value.code is ErrorCode.INVALID_TIME_RANGE

    def test_inverted_explicit_window(self):
        with pytest.raises(ConfigError):
            TimeWindow(from_ms=10, to_ms=5)


class TestTicks:

    @pytest.mark.parametrize("from_ms, to_ms", [
        (0, 4), (0, 16), (0, 100), (3, 997), (0, 12345), (-500, 500), (0, 10**9),
    ])
    def test_tick_count_between_five_and_fifteen(self, from_ms, to_ms):
        ticks, step = tick_positions(from_ms, to_ms)
        assert 5 <= len(ticks) <= 15
        assert ticks == tuple(range(ticks[0], ticks[-1] + 1, step))

    def test_one_two_five_progression(self):
        assert choose_tick_step(0, 14) == 1
        assert choose_tick_step(0, 16) == 2
        assert choose_tick_step(0, 50) == 5
        assert choose_tick_step(0, 100) == 10
        assert choose_tick_step(0, 200) == 20

    def test_degenerate_window_single_tick(self):
        assert tick_positions(42, 42) == ((42,), 0)


class TestSubLanes:

    def test_empty(self):
        assert assign_sub_lanes([]) == ((), 1)

    def test_overlapping_spans_stack(self):
        assert assign_sub_lanes([(0, 10), (5, 15), (20, 30)]) == ((0, 1, 0), 2)

    def test_touching_spans_share_a_row(self):
        assert assign_sub_lanes([(0, 10), (10, 20)]) == ((0, 0), 1)

    def test_nested_spans(self):
        assert assign_sub_lanes([(0, 100), (10, 20), (30, 40)]) == ((0, 1, 1), 2)

    def test_same_begin_never_shares(self):
        rows, count = assign_sub_lanes([(5, 5), (5, 5)])
        assert count == 2
        assert rows[0] != rows[1]


class TestLaneGeometry:

    def test_single_interval_fills_plot(self):
        view = layout(SINGLE_REPAINT)
        config = LayoutConfig()

        assert view.width == 2 * config.margin + config.plot_width
        (lane,) = view.lanes
        (interval,) = lane.intervals
        assert lane.key == "output.0"
        assert interval.x == config.margin
        assert interval.width == config.plot_width
        assert not interval.clipped_left and not interval.clipped_right

    def test_lanes_stacked_in_first_seen_order(self):
        view = layout(TWO_OUTPUTS)
        config = LayoutConfig()

        assert [lane.key for lane in view.lanes] == ["output.0", "output.1"]
        assert [lane.y for lane in view.lanes] == [
            config.margin, config.margin + config.lane_height
        ]
        first = view.lanes[0].intervals[0]
        second = view.lanes[1].intervals[0]
        assert first.x < second.x

    def test_clipping_at_window_start(self):
        records = [begin("output.0", 1, 10), end(1, 100), instant("output.0", 200, "vblank")]
        view = layout(records, TimeWindow(from_ms=50, to_ms=200))

        (interval,) = view.lanes[0].intervals
        assert interval.x == view.scale.pixel_x(50)
        assert interval.begin == 50 and interval.end == 100
        assert interval.clipped_left
        assert not interval.clipped_right

    def test_events_outside_window_are_omitted(self):
        records = [
            begin("output.0", 1, 0), end(1, 5),
            instant("output.0", 8, "vblank"),
            info("output.0", 9, "late"),
            begin("output.0", 2, 20), end(2, 30),
        ]
        view = layout(records, TimeWindow(from_ms=10, to_ms=40))

        lane = view.lanes[0]
        assert [(iv.begin, iv.end) for iv in lane.intervals] == [(20, 30)]
        assert lane.instants == ()
        assert lane.annotations == ()

    def test_tiny_interval_gets_minimum_width(self):
        records = [begin("output.0", 1, 0), end(1, 0), instant("output.0", 10**6, "vblank")]
        view = layout(records)
        assert view.lanes[0].intervals[0].width == LayoutConfig().min_rect_width

    def test_overlapping_intervals_split_band(self):
        records = [
            begin("output.0", 1, 0), begin("output.0", 2, 5),
            end(1, 10), end(2, 15),
        ]
        view = layout(records)

        lane = view.lanes[0]
        assert lane.sub_lanes == 2
        a, b = lane.intervals
        assert a.height == b.height
        assert {a.sub_lane, b.sub_lane} == {0, 1}
        assert a.y != b.y


class TestAxisAndLegend:

    def test_axis_below_lanes(self):
        config = LayoutConfig()
        view = layout(TWO_OUTPUTS)
        assert view.axis.y == config.margin + 2 * config.lane_height + config.lane_gap
        assert view.axis.ticks[0].x >= config.margin
        assert view.axis.ticks[-1].x <= config.margin + config.plot_width

    def test_legend_lists_visible_labels(self):
        records = [
            begin("output.0", 1, 0, "repaint"), end(1, 10),
            instant("output.0", 12, "vblank"),
        ]
        view = layout(records)

        assert [(e.label, e.style) for e in view.legend] == [
            ("repaint", "interval"),
            ("vblank", "instant"),
        ]
        assert view.height == int(
            view.axis.y + LayoutConfig().axis_height
            + 2 * LayoutConfig().legend_row_height + LayoutConfig().margin
        )

    def test_palette_follows_label_order(self):
        records = [
            begin("output.0", 1, 0, "zeta"), end(1, 10),
            begin("output.0", 2, 10, "alpha"), end(2, 20),
        ]
        view = layout(records)
        by_label = {iv.label: iv.palette_index for iv in view.lanes[0].intervals}
        assert by_label == {"alpha": 0, "zeta": 1}


class TestConfig:

    def test_rejects_non_positive_width(self):
        with pytest.raises(ConfigError):
            LayoutConfig(plot_width=0)

    def test_rejects_cramped_lanes(self):
        with pytest.raises(ConfigError):
            LayoutConfig(lane_height=10, label_height=14)
