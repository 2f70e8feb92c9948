"""
Repaint Timeline

Converts a compositor repaint-loop event log into an SVG timeline.

LAYER FLOW:
===========
1. Ingestion: bytes/text -> generic JSON values
2. Temporal: values -> TimelineGraph (EventInterpreter)
3. Visualization: TimelineGraph + TimeWindow -> SVG
"""

from .contracts import (
    ErrorCode,
    Error,
    TimelineError,
    SourceError,
    DecodeError,
    InterpretError,
    MalformedRecord,
    UnmatchedEnd,
    UnclosedInterval,
    ConfigError,
    RenderError,
    SinkError,
    Instant,
    Interval,
    Annotation,
    TimeWindow,
    OpenIntervalPolicy,
    UnmatchedEndPolicy,
)
from .temporal import TimelineGraph, EventInterpreter, InterpreterConfig
from .visualization import LayoutConfig
from .engine import RunConfig, RunResult, interpret, render, run

__version__ = "0.3.0"

__all__ = [
    'ErrorCode',
    'Error',
    'TimelineError',
    'SourceError',
    'DecodeError',
    'InterpretError',
    'MalformedRecord',
    'UnmatchedEnd',
    'UnclosedInterval',
    'ConfigError',
    'RenderError',
    'SinkError',
    'Instant',
    'Interval',
    'Annotation',
    'TimeWindow',
    'OpenIntervalPolicy',
    'UnmatchedEndPolicy',
    'TimelineGraph',
    'EventInterpreter',
    'InterpreterConfig',
    'LayoutConfig',
    'RunConfig',
    'RunResult',
    'interpret',
    'render',
    'run',
]
