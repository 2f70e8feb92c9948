"""
Visualization Layer

RESPONSIBILITY: Deterministic transformation of a finalized TimelineGraph
into an SVG document.

- layout: time scale, lanes, sub-lanes, axis ticks, legend (pure geometry)
- svg: serialization of the computed view
"""

from .layout import (
    LayoutConfig,
    TimeScale,
    TimelineLayout,
    TimelineView,
    RenderedLane,
    RenderedInterval,
    RenderedInstant,
    RenderedAnnotation,
    TimeAxis,
    AxisTick,
    LegendEntry,
    resolve_window,
    tick_positions,
    choose_tick_step,
    assign_sub_lanes,
)
from .svg import SvgWriter, SVG_NAMESPACE, PALETTE, palette_color

__all__ = [
    'LayoutConfig',
    'TimeScale',
    'TimelineLayout',
    'TimelineView',
    'RenderedLane',
    'RenderedInterval',
    'RenderedInstant',
    'RenderedAnnotation',
    'TimeAxis',
    'AxisTick',
    'LegendEntry',
    'resolve_window',
    'tick_positions',
    'choose_tick_step',
    'assign_sub_lanes',
    'SvgWriter',
    'SVG_NAMESPACE',
    'PALETTE',
    'palette_color',
]
