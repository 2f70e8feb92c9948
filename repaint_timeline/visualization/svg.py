"""
SVG Writer

Serializes a TimelineView into a single SVG document.

BOUNDARY ENFORCEMENT:
=====================
- Reads the view only; all geometry is decided by the layout
- Builds the whole document in memory before touching the sink
- One write per document, so a failed render leaves no partial output
"""

from __future__ import annotations
from typing import IO
import io
import logging
import re
import xml.etree.ElementTree as ET

from ..contracts.base import ErrorCode, SinkError
from .layout import (
    LegendEntry, RenderedAnnotation, RenderedInstant, RenderedInterval,
    RenderedLane, TimeAxis, TimelineView
)

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

PALETTE = (
    "#4e79a7", "#f28e2b", "#59a14f", "#e15759", "#76b7b2",
    "#edc948", "#b07aa1", "#ff9da7", "#9c755f", "#bab0ac",
)

LABEL_CHAR_WIDTH = 6.0

# Complement of the XML 1.0 Char production; lone surrogates included
_NON_XML_CHARS = re.compile(
    "[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)
REPLACEMENT_CHAR = "\ufffd"


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def xml_safe(text: str) -> str:
    """Replace characters an XML document may not contain with U+FFFD."""
    return _NON_XML_CHARS.sub(REPLACEMENT_CHAR, text)


def _num(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


class SvgWriter:
    """Turns a TimelineView into SVG markup."""

    def __init__(self, title: str = "Repaint timeline"):
        self._title = title

    def document(self, view: TimelineView) -> str:
        root = ET.Element("svg", {
            "xmlns": SVG_NAMESPACE,
            "width": str(view.width),
            "height": str(view.height),
            "viewBox": f"0 0 {view.width} {view.height}",
            "font-family": "sans-serif",
            "font-size": "11",
        })
        ET.SubElement(root, "title").text = xml_safe(self._title)

        lanes = ET.SubElement(root, "g", {"class": "lanes"})
        for lane in view.lanes:
            self._lane(lanes, lane, view)

        self._axis(ET.SubElement(root, "g", {"class": "axis"}), view.axis)

        legend = ET.SubElement(root, "g", {"class": "legend"})
        for entry in view.legend:
            self._legend_entry(legend, entry, view)

        return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"

    def write(self, view: TimelineView, sink: IO) -> int:
        """
        Write the document to the sink in one call.

        Binary sinks (io.RawIOBase, io.BufferedIOBase) receive UTF-8 bytes;
        any other sink receives text.

        Raises:
            SinkError: the sink rejected the write
        """
        text = self.document(view)
        try:
            if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
                sink.write(text.encode("utf-8"))
            else:
                sink.write(text)
        except (OSError, ValueError) as err:
            raise SinkError(
                f"Failed to write SVG output: {err}",
                code=ErrorCode.SINK_FAILURE
            ) from err
        logger.debug("Wrote %d characters of SVG", len(text))
        return len(text)

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def _lane(self, parent: ET.Element, lane: RenderedLane, view: TimelineView) -> None:
        group = ET.SubElement(parent, "g", {
            "class": "lane",
            "data-entity": xml_safe(lane.key),
            "data-lane": str(lane.index),
        })
        bottom = lane.y + lane.height
        ET.SubElement(group, "line", {
            "class": "lane-separator",
            "x1": "0",
            "y1": _num(bottom),
            "x2": str(view.width),
            "y2": _num(bottom),
            "stroke": "#dddddd",
        })
        label = ET.SubElement(group, "text", {
            "class": "lane-label",
            "x": _num(view.scale.origin_x),
            "y": _num(lane.y + 11),
            "font-weight": "bold",
        })
        label.text = xml_safe(lane.label)

        for interval in lane.intervals:
            self._interval(group, interval)
        for instant in lane.instants:
            self._instant(group, instant)
        for annotation in lane.annotations:
            self._annotation(group, annotation)

    def _interval(self, parent: ET.Element, interval: RenderedInterval) -> None:
        classes = ["interval"]
        if interval.open_ended:
            classes.append("open-ended")
        if interval.clipped_left:
            classes.append("clipped-left")
        if interval.clipped_right:
            classes.append("clipped-right")

        attrs = {
            "class": " ".join(classes),
            "x": _num(interval.x),
            "y": _num(interval.y),
            "width": _num(interval.width),
            "height": _num(interval.height),
            "fill": palette_color(interval.palette_index),
            "fill-opacity": "0.85",
            "stroke": "#333333",
            "stroke-width": "0.5",
            "data-label": xml_safe(interval.label),
            "data-begin": str(interval.begin),
            "data-end": str(interval.end),
        }
        if interval.open_ended:
            attrs["stroke-dasharray"] = "3 2"
        rect = ET.SubElement(parent, "rect", attrs)
        suffix = " (open)" if interval.open_ended else ""
        ET.SubElement(rect, "title").text = (
            f"{xml_safe(interval.label)} [{interval.begin}, {interval.end}] ms{suffix}"
        )

        if interval.width >= LABEL_CHAR_WIDTH * len(interval.label) + 4:
            text = ET.SubElement(parent, "text", {
                "class": "interval-label",
                "x": _num(interval.x + 2),
                "y": _num(interval.y + interval.height / 2 + 4),
                "font-size": "10",
            })
            text.text = xml_safe(interval.label)

    def _instant(self, parent: ET.Element, instant: RenderedInstant) -> None:
        s = instant.size
        x, y = instant.x, instant.y
        path = ET.SubElement(parent, "path", {
            "class": "instant",
            "d": (
                f"M {_num(x)} {_num(y - s)} L {_num(x + s)} {_num(y)} "
                f"L {_num(x)} {_num(y + s)} L {_num(x - s)} {_num(y)} Z"
            ),
            "fill": palette_color(instant.palette_index),
            "stroke": "#000000",
            "stroke-width": "0.5",
            "data-label": xml_safe(instant.label),
            "data-ts": str(instant.ts),
        })
        ET.SubElement(path, "title").text = f"{xml_safe(instant.label)} @ {instant.ts} ms"

    def _annotation(self, parent: ET.Element, annotation: RenderedAnnotation) -> None:
        text = ET.SubElement(parent, "text", {
            "class": "annotation",
            "x": _num(annotation.x),
            "y": _num(annotation.y),
            "font-size": "9",
            "fill": "#555555",
            "data-ts": str(annotation.ts),
        })
        text.text = xml_safe(annotation.text)

    def _axis(self, parent: ET.Element, axis: TimeAxis) -> None:
        ET.SubElement(parent, "line", {
            "class": "axis-line",
            "x1": _num(axis.x_start),
            "y1": _num(axis.y),
            "x2": _num(axis.x_end),
            "y2": _num(axis.y),
            "stroke": "#000000",
        })
        for tick in axis.ticks:
            ET.SubElement(parent, "line", {
                "class": "tick",
                "x1": _num(tick.x),
                "y1": _num(axis.y),
                "x2": _num(tick.x),
                "y2": _num(axis.y + 5),
                "stroke": "#000000",
            })
            label = ET.SubElement(parent, "text", {
                "class": "tick-label",
                "x": _num(tick.x),
                "y": _num(axis.y + 16),
                "text-anchor": "middle",
            })
            label.text = tick.label
        caption = ET.SubElement(parent, "text", {
            "class": "axis-label",
            "x": _num(axis.x_end),
            "y": _num(axis.y + 30),
            "text-anchor": "end",
        })
        caption.text = axis.label

    def _legend_entry(self, parent: ET.Element, entry: LegendEntry, view: TimelineView) -> None:
        x = view.scale.origin_x
        color = palette_color(entry.palette_index)
        mid = entry.y + 6
        if entry.style == "interval":
            ET.SubElement(parent, "line", {
                "class": "legend-swatch interval",
                "x1": _num(x),
                "y1": _num(mid),
                "x2": _num(x + 14),
                "y2": _num(mid),
                "stroke": color,
                "stroke-width": "8",
            })
        else:
            ET.SubElement(parent, "path", {
                "class": "legend-swatch instant",
                "d": (
                    f"M {_num(x + 7)} {_num(mid - 4)} L {_num(x + 11)} {_num(mid)} "
                    f"L {_num(x + 7)} {_num(mid + 4)} L {_num(x + 3)} {_num(mid)} Z"
                ),
                "fill": color,
            })
        text = ET.SubElement(parent, "text", {
            "class": "legend-label",
            "x": _num(x + 20),
            "y": _num(mid + 4),
        })
        text.text = xml_safe(entry.label)
