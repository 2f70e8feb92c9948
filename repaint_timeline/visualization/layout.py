"""
Timeline Layout

Responsibility:
Deterministic transformation of a finalized TimelineGraph into pixel
geometry. Input: TimelineGraph + TimeWindow -> Output: TimelineView.

DETERMINISTIC:
Same graph + same window + same config = identical view.
No drawing happens here; the SVG writer only serializes the view.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import networkx as nx

from ..contracts.base import ConfigError, ErrorCode
from ..contracts.events import TimeWindow
from ..temporal.graph import EntityView, TimelineGraph

logger = logging.getLogger(__name__)

TICK_MULTIPLIERS = (1, 2, 5)


@dataclass(frozen=True)
class LayoutConfig:
    """Pixel metrics of the diagram."""
    margin: int = 20
    plot_width: int = 1000
    lane_height: int = 48
    label_height: int = 14
    lane_gap: int = 4
    axis_height: int = 36
    legend_row_height: int = 16
    max_ticks: int = 15
    min_rect_width: float = 1.0
    marker_size: float = 4.0

    def __post_init__(self):
        if self.plot_width <= 0:
            raise ConfigError("plot_width must be positive", code=ErrorCode.INVALID_TIME_RANGE)
        if self.lane_height <= self.label_height + self.lane_gap:
            raise ConfigError(
                "lane_height must leave room for the label row and gap",
                code=ErrorCode.INVALID_TIME_RANGE
            )
        if self.max_ticks < 2:
            raise ConfigError("max_ticks must be at least 2", code=ErrorCode.INVALID_TIME_RANGE)


# =============================================================================
# TIME SCALE
# =============================================================================

@dataclass(frozen=True)
class TimeScale:
    """
    Linear time-to-pixel mapping.

    pixel_x(t) = origin_x + (t - from_ms) * scale
    scale = plot_width / max(1, to_ms - from_ms)
    """
    from_ms: int
    to_ms: int
    origin_x: float
    plot_width: float

    @property
    def span(self) -> int:
        return max(1, self.to_ms - self.from_ms)

    @property
    def scale(self) -> float:
        return self.plot_width / self.span

    def pixel_x(self, t: int) -> float:
        return self.origin_x + (t - self.from_ms) * self.scale

    def contains(self, t: int) -> bool:
        return self.from_ms <= t <= self.to_ms


def resolve_window(graph: TimelineGraph, window: Optional[TimeWindow]) -> Tuple[int, int]:
    """
    Effective [from_ms, to_ms] for a render.

    Missing bounds come from the graph; an empty graph contributes 0.
    """
    window = window or TimeWindow()
    bounds = graph.observed_bounds()
    if bounds is None:
        observed_min = observed_max = None
    else:
        observed_min, observed_max = bounds

    from_ms = window.from_ms
    to_ms = window.to_ms
    if from_ms is None:
        from_ms = observed_min if observed_min is not None else (to_ms if to_ms is not None else 0)
    if to_ms is None:
        to_ms = observed_max if observed_max is not None else from_ms

    if from_ms > to_ms:
        raise ConfigError(
            f"Resolved time window [{from_ms}, {to_ms}] is empty; "
            f"observed data spans {bounds}",
            code=ErrorCode.INVALID_TIME_RANGE,
            context=(("from_ms", str(from_ms)), ("to_ms", str(to_ms)))
        )
    return (from_ms, to_ms)


# =============================================================================
# AXIS TICKS
# =============================================================================

def _tick_count(from_ms: int, to_ms: int, step: int) -> int:
    first = -(-from_ms // step)
    last = to_ms // step
    return max(0, last - first + 1)


def choose_tick_step(from_ms: int, to_ms: int, max_ticks: int = 15) -> int:
    """Smallest 1-2-5 millisecond step giving at most max_ticks ticks."""
    magnitude = 1
    while True:
        for multiplier in TICK_MULTIPLIERS:
            step = multiplier * magnitude
            if _tick_count(from_ms, to_ms, step) <= max_ticks:
                return step
        magnitude *= 10


def tick_positions(from_ms: int, to_ms: int, max_ticks: int = 15) -> Tuple[Tuple[int, ...], int]:
    """
    Tick timestamps within the window and the step between them.

    A degenerate window has a single tick and a step of 0.
    """
    if to_ms <= from_ms:
        return ((from_ms,), 0)
    step = choose_tick_step(from_ms, to_ms, max_ticks)
    first = -(-from_ms // step) * step
    return (tuple(range(first, to_ms + 1, step)), step)


# =============================================================================
# SUB-LANE ASSIGNMENT
# =============================================================================

def assign_sub_lanes(spans: Sequence[Tuple[int, int]]) -> Tuple[Tuple[int, ...], int]:
    """
    Stack overlapping spans into rows.

    Builds the interval overlap graph and colours it greedily in begin
    order, which uses the minimum number of rows for interval graphs.
    Spans that merely touch share a row; spans with the same begin never do.

    Returns (row per span, row count).
    """
    if not spans:
        return ((), 1)

    order = sorted(range(len(spans)), key=lambda i: (spans[i][0], i))
    overlap = nx.Graph()
    overlap.add_nodes_from(order)

    for pos, i in enumerate(order):
        begin_i, end_i = spans[i]
        for j in order[pos + 1:]:
            begin_j = spans[j][0]
            if begin_j > begin_i and begin_j >= end_i:
                break
            overlap.add_edge(i, j)

    rows = nx.greedy_color(overlap, strategy=lambda g, colors: iter(order))
    assignment = tuple(rows[i] for i in range(len(spans)))
    return (assignment, max(assignment) + 1)


# =============================================================================
# VIEW CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class RenderedInterval:
    """A clipped interval ready for drawing."""
    x: float
    y: float
    width: float
    height: float
    label: str
    palette_index: int
    begin: int
    end: int
    sub_lane: int
    clipped_left: bool
    clipped_right: bool
    open_ended: bool


@dataclass(frozen=True)
class RenderedInstant:
    x: float
    y: float
    label: str
    palette_index: int
    ts: int
    size: float = 4.0


@dataclass(frozen=True)
class RenderedAnnotation:
    x: float
    y: float
    text: str
    ts: int


@dataclass(frozen=True)
class RenderedLane:
    """One entity's fixed-height band."""
    index: int
    key: str
    label: str
    y: float
    height: float
    sub_lanes: int
    intervals: Tuple[RenderedInterval, ...]
    instants: Tuple[RenderedInstant, ...]
    annotations: Tuple[RenderedAnnotation, ...]


@dataclass(frozen=True)
class AxisTick:
    ms: int
    x: float
    label: str


@dataclass(frozen=True)
class TimeAxis:
    """The rendered time axis."""
    y: float
    x_start: float
    x_end: float
    step_ms: int
    ticks: Tuple[AxisTick, ...]
    label: str = "time (ms)"


@dataclass(frozen=True)
class LegendEntry:
    label: str
    style: str  # "interval" | "instant"
    palette_index: int
    y: float


@dataclass(frozen=True)
class TimelineView:
    """
    Fully calculated timeline diagram.

    DETERMINISTIC:
    Same graph + same window = identical view.
    """
    width: int
    height: int
    scale: TimeScale
    lanes: Tuple[RenderedLane, ...]
    axis: TimeAxis
    legend: Tuple[LegendEntry, ...]


# =============================================================================
# LAYOUT ENGINE
# =============================================================================

class TimelineLayout:
    """Computes a TimelineView from a finalized graph."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def compute(self, graph: TimelineGraph, window: Optional[TimeWindow] = None) -> TimelineView:
        cfg = self._config
        from_ms, to_ms = resolve_window(graph, window)
        scale = TimeScale(
            from_ms=from_ms,
            to_ms=to_ms,
            origin_x=cfg.margin,
            plot_width=cfg.plot_width
        )
        palette = {label: i for i, label in enumerate(graph.labels())}

        lanes = tuple(
            self._layout_lane(index, entity, scale, palette)
            for index, entity in enumerate(graph.entities_in_display_order())
        )

        axis_y = cfg.margin + len(lanes) * cfg.lane_height + cfg.lane_gap
        axis = self._layout_axis(scale, axis_y)

        legend_top = axis_y + cfg.axis_height
        legend = self._layout_legend(lanes, legend_top)

        height = int(legend_top + len(legend) * cfg.legend_row_height + cfg.margin)
        width = int(2 * cfg.margin + cfg.plot_width)

        logger.debug(
            "Layout: window=[%d, %d] lanes=%d ticks=%d legend=%d",
            from_ms, to_ms, len(lanes), len(axis.ticks), len(legend)
        )

        return TimelineView(
            width=width,
            height=height,
            scale=scale,
            lanes=lanes,
            axis=axis,
            legend=legend
        )

    def _layout_lane(
        self,
        index: int,
        entity: EntityView,
        scale: TimeScale,
        palette: Dict[str, int]
    ) -> RenderedLane:
        cfg = self._config
        lane_y = cfg.margin + index * cfg.lane_height
        band_y = lane_y + cfg.label_height
        band_height = cfg.lane_height - cfg.label_height - cfg.lane_gap

        visible = [
            iv for iv in entity.intervals
            if iv.end >= scale.from_ms and iv.begin <= scale.to_ms
        ]
        spans = [
            (max(iv.begin, scale.from_ms), min(iv.end, scale.to_ms))
            for iv in visible
        ]
        rows, row_count = assign_sub_lanes(spans)
        row_height = band_height / row_count

        intervals: List[RenderedInterval] = []
        for iv, (begin, end), row in zip(visible, spans, rows):
            x = scale.pixel_x(begin)
            width = max(scale.pixel_x(end) - x, cfg.min_rect_width)
            intervals.append(RenderedInterval(
                x=x,
                y=band_y + row * row_height,
                width=width,
                height=row_height,
                label=iv.label,
                palette_index=palette[iv.label],
                begin=begin,
                end=end,
                sub_lane=row,
                clipped_left=iv.begin < scale.from_ms,
                clipped_right=iv.end > scale.to_ms,
                open_ended=iv.open_ended
            ))

        marker_y = band_y + band_height / 2
        instants = tuple(
            RenderedInstant(
                x=scale.pixel_x(ev.ts),
                y=marker_y,
                label=ev.label,
                palette_index=palette[ev.label],
                ts=ev.ts,
                size=cfg.marker_size
            )
            for ev in entity.instants
            if scale.contains(ev.ts)
        )

        annotations = tuple(
            RenderedAnnotation(
                x=scale.pixel_x(ev.ts),
                y=band_y + band_height,
                text=ev.text,
                ts=ev.ts
            )
            for ev in entity.annotations
            if scale.contains(ev.ts)
        )

        return RenderedLane(
            index=index,
            key=entity.key,
            label=entity.label,
            y=lane_y,
            height=cfg.lane_height,
            sub_lanes=row_count,
            intervals=tuple(intervals),
            instants=instants,
            annotations=annotations
        )

    def _layout_axis(self, scale: TimeScale, y: float) -> TimeAxis:
        positions, step = tick_positions(scale.from_ms, scale.to_ms, self._config.max_ticks)
        return TimeAxis(
            y=y,
            x_start=scale.origin_x,
            x_end=scale.origin_x + scale.plot_width,
            step_ms=step,
            ticks=tuple(
                AxisTick(ms=ms, x=scale.pixel_x(ms), label=str(ms))
                for ms in positions
            )
        )

    def _layout_legend(self, lanes: Sequence[RenderedLane], top: float) -> Tuple[LegendEntry, ...]:
        seen = set()
        for lane in lanes:
            for iv in lane.intervals:
                seen.add((iv.label, "interval", iv.palette_index))
            for inst in lane.instants:
                seen.add((inst.label, "instant", inst.palette_index))

        return tuple(
            LegendEntry(
                label=label,
                style=style,
                palette_index=palette_index,
                y=top + row * self._config.legend_row_height
            )
            for row, (label, style, palette_index) in enumerate(sorted(seen))
        )
