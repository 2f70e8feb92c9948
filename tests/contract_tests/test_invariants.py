"""
Property Tests for Timeline Contracts
Verifies bounds, pairing, axis and layout invariants over generated streams.
"""

import io
import xml.etree.ElementTree as ET

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from repaint_timeline.contracts.events import TimeWindow
from repaint_timeline.engine import interpret, render
from repaint_timeline.visualization.layout import (
    LayoutConfig, TimelineLayout, assign_sub_lanes, tick_positions
)
from tests.fixtures import begin, end, info, instant

SVG = "{http://www.w3.org/2000/svg}"

ENTITIES = ("output.0", "output.1", "surface.3", "seat.0")
LABELS = ("repaint", "flush", "commit", "vblank")

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

@composite
def record_streams(draw):
    """
    Well-formed record streams with interleaved intervals.

    Returns (records, timestamps, interval_count). Records are sorted by
    time; a begin always precedes its own end.
    """
    items = draw(st.lists(
        st.tuples(
            st.sampled_from(ENTITIES),
            st.sampled_from(("interval", "instant", "info")),
            st.integers(min_value=-10_000, max_value=10_000),
            st.integers(min_value=0, max_value=500),
            st.sampled_from(LABELS),
        ),
        max_size=40
    ))

    keyed = []
    timestamps = []
    intervals = 0
    for n, (entity, kind, ts, duration, label) in enumerate(items):
        if kind == "interval":
            keyed.append((ts, 2 * n, begin(entity, n, ts, label)))
            keyed.append((ts + duration, 2 * n + 1, end(n, ts + duration, entity)))
            timestamps.extend((ts, ts + duration))
            intervals += 1
        elif kind == "instant":
            keyed.append((ts, 2 * n, instant(entity, ts, label)))
            timestamps.append(ts)
        else:
            keyed.append((ts, 2 * n, info(entity, ts, f"note {n}")))
            timestamps.append(ts)

    keyed.sort(key=lambda k: (k[0], k[1]))
    return [record for _, _, record in keyed], timestamps, intervals


spans = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=0, max_value=200),
    ).map(lambda t: (t[0], t[0] + t[1])),
    max_size=30
)

# =============================================================================
# PROPERTIES
# =============================================================================

class TestModelInvariants:

    @given(record_streams())
    def test_bounds_equal_extremes_of_all_timestamps(self, stream):
        records, timestamps, _ = stream
        graph = interpret(records)

        if timestamps:
            assert graph.observed_bounds() == (min(timestamps), max(timestamps))
        else:
            assert graph.observed_bounds() is None

    @given(record_streams())
    def test_every_pair_yields_one_ordered_interval(self, stream):
        records, _, interval_count = stream
        graph = interpret(records)

        intervals = [
            iv
            for entity in graph.entities_in_display_order()
            for iv in entity.intervals
        ]
        assert len(intervals) == interval_count
        assert all(iv.begin <= iv.end for iv in intervals)
        assert not any(iv.open_ended for iv in intervals)


class TestRenderInvariants:

    @settings(max_examples=50, deadline=None)
    @given(record_streams())
    def test_render_is_valid_and_deterministic(self, stream):
        records, _, interval_count = stream
        graph = interpret(records)

        first, second = io.StringIO(), io.StringIO()
        render(graph, TimeWindow(), first)
        render(graph, TimeWindow(), second)

        assert first.getvalue() == second.getvalue()
        root = ET.fromstring(first.getvalue().split("\n", 1)[1])
        assert root.tag == f"{SVG}svg"
        assert len(root.findall(f".//{SVG}rect")) == interval_count

    @settings(deadline=None)
    @given(record_streams())
    def test_lanes_are_ordered_and_non_overlapping(self, stream):
        records, _, _ = stream
        graph = interpret(records)
        config = LayoutConfig()
        view = TimelineLayout(config).compute(graph)

        for index, lane in enumerate(view.lanes):
            assert lane.index == index
            assert lane.y == config.margin + index * config.lane_height
            for iv in lane.intervals:
                assert lane.y <= iv.y
                assert iv.y + iv.height <= lane.y + lane.height + 1e-6
                assert view.scale.origin_x - 1e-6 <= iv.x
                assert iv.x + iv.width <= view.scale.origin_x + config.plot_width + config.min_rect_width


class TestAxisInvariants:

    @given(
        st.integers(min_value=-10**12, max_value=10**12),
        st.integers(min_value=0, max_value=10**12),
    )
    def test_tick_count_bounded(self, from_ms, span):
        ticks, step = tick_positions(from_ms, from_ms + span)

        assert 1 <= len(ticks) <= 15
        assert all(from_ms <= t <= from_ms + span for t in ticks)
        if span >= 4:
            assert len(ticks) >= 5
            assert all(t % step == 0 for t in ticks)


class TestSubLaneInvariants:

    @given(spans)
    def test_rows_never_hold_overlapping_spans(self, items):
        rows, count = assign_sub_lanes(items)

        assert len(rows) == len(items)
        assert count >= 1
        for i, (a_begin, a_end) in enumerate(items):
            for j in range(i + 1, len(items)):
                if rows[i] != rows[j]:
                    continue
                b_begin, b_end = items[j]
                assert a_begin != b_begin
                assert a_end <= b_begin or b_end <= a_begin
