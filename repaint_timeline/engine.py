"""
Timeline Engine
===============

Wires the layers together:

    value source -> EventInterpreter (mutates TimelineGraph)
        -> finalize -> TimelineLayout -> SvgWriter -> sink

Entry points:
- interpret(values) -> TimelineGraph
- render(graph, window, sink)
- run(config) for file-to-file conversion

NO PARTIAL OUTPUT:
run() interprets the whole input and renders into memory before the
output file is created; the file is then replaced atomically.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterable, Optional, Tuple, Union
import io
import logging
import os
import tempfile

from .contracts.base import ConfigError, Error, ErrorCode, SinkError
from .contracts.events import TimeWindow
from .ingestion.source import GenericValue, open_values
from .observability import RunMetrics
from .temporal.graph import TimelineGraph
from .temporal.interpreter import EventInterpreter, InterpreterConfig
from .visualization.layout import LayoutConfig, TimelineLayout
from .visualization.svg import SvgWriter

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class RunConfig:
    """Unified configuration for one file-to-file conversion."""
    input_path: Optional[Union[str, Path]] = None
    output_path: Optional[Union[str, Path]] = None
    window: TimeWindow = field(default_factory=TimeWindow)
    interpreter: InterpreterConfig = field(default_factory=InterpreterConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def validate(self) -> None:
        """Raise ConfigError before any processing begins."""
        if not self.input_path:
            raise ConfigError("Input file not specified", code=ErrorCode.MISSING_TARGET)
        if not self.output_path:
            raise ConfigError("Output file not specified", code=ErrorCode.MISSING_TARGET)


@dataclass(frozen=True)
class RunResult:
    """Summary of a completed run."""
    output_path: Path
    entity_count: int
    event_count: int
    bounds: Optional[Tuple[int, int]]
    characters_written: int
    diagnostics: Tuple[Error, ...] = ()


# =============================================================================
# ENTRY POINTS
# =============================================================================

def _drive(values: Iterable[GenericValue], interpreter: EventInterpreter) -> TimelineGraph:
    graph = TimelineGraph()
    for value in values:
        interpreter.process(value, graph)
    interpreter.finalize(graph)
    return graph


def interpret(
    values: Iterable[GenericValue],
    config: Optional[InterpreterConfig] = None,
    metrics: Optional[RunMetrics] = None
) -> TimelineGraph:
    """Consume every value and return the finalized graph."""
    return _drive(values, EventInterpreter(config, metrics))


def render(
    graph: TimelineGraph,
    window: Optional[TimeWindow],
    sink: IO,
    config: Optional[LayoutConfig] = None
) -> None:
    """Lay out the finalized graph and write one SVG document to sink."""
    view = TimelineLayout(config).compute(graph, window)
    SvgWriter().write(view, sink)


def run(config: RunConfig, metrics: Optional[RunMetrics] = None) -> RunResult:
    """
    Convert config.input_path into an SVG at config.output_path.

    Raises:
        ConfigError: missing paths or an empty time window
        SourceError / DecodeError: unreadable or malformed input
        InterpretError: input violates the record schema
        SinkError: output could not be written
    """
    config.validate()
    metrics = metrics or RunMetrics()

    interpreter = EventInterpreter(config.interpreter, metrics)
    graph = _drive(open_values(config.input_path), interpreter)
    logger.info(
        "Interpreted %d events on %d entities, bounds=%s",
        graph.event_count, graph.entity_count, graph.observed_bounds()
    )

    buffer = io.StringIO()
    render(graph, config.window, buffer, config.layout)
    document = buffer.getvalue()

    output_path = Path(config.output_path)
    _replace_file(output_path, document)
    metrics.increment("svg.characters", len(document))
    logger.info("Run summary: %s", metrics.summary())

    return RunResult(
        output_path=output_path,
        entity_count=graph.entity_count,
        event_count=graph.event_count,
        bounds=graph.observed_bounds(),
        characters_written=len(document),
        diagnostics=interpreter.diagnostics
    )


def _replace_file(path: Path, document: str) -> None:
    """Write document beside path, then atomically move it into place."""
    directory = path.parent if str(path.parent) else Path(".")
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=directory,
            prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(document)
        os.replace(tmp_name, path)
    except (OSError, ValueError) as err:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise SinkError(
            f"Failed to write {path}: {getattr(err, 'strerror', None) or err}",
            code=ErrorCode.SINK_FAILURE,
            context=(("output", str(path)),)
        ) from err
