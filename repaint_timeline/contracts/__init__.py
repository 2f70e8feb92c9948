"""
Shared contracts: errors, events, policies and the time window.

This package is READ-ONLY from all layers. Layers import types from here
and never from each other's implementations.
"""

from .base import (
    ErrorCode,
    Error,
    TimelineError,
    SourceError,
    DecodeError,
    InterpretError,
    MalformedRecord,
    UnmatchedEnd,
    UnclosedInterval,
    GraphFinalized,
    ConfigError,
    RenderError,
    SinkError,
)
from .events import (
    RecordKind,
    OpenIntervalPolicy,
    UnmatchedEndPolicy,
    Instant,
    Interval,
    Annotation,
    TimelineEvent,
    PendingInterval,
    TimeWindow,
)

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
    'GraphFinalized',
    'ConfigError',
    'RenderError',
    'SinkError',
    'RecordKind',
    'OpenIntervalPolicy',
    'UnmatchedEndPolicy',
    'Instant',
    'Interval',
    'Annotation',
    'TimelineEvent',
    'PendingInterval',
    'TimeWindow',
]
