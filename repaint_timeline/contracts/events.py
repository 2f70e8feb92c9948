"""
Event Contracts

Immutable timeline events attached to entities.

WHY SEPARATE FROM THE MODEL:
============================
Events are shared between the interpreter (writes) and the renderer
(reads). Neither side may change an event after creation, and events never
point back at their entity - entities own their event sequences outright.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum

from .base import ConfigError, ErrorCode


# =============================================================================
# RECORD KINDS (closed set)
# =============================================================================

class RecordKind(Enum):
    """
    Record shapes recognised in the input stream.
    Anything else is ignored for forward compatibility.
    """
    BEGIN = "begin"
    END = "end"
    INSTANT = "instant"
    INFO = "info"
    DESCRIBE = "describe"

    @classmethod
    def lookup(cls, kind: str) -> Optional[RecordKind]:
        try:
            return cls(kind)
        except ValueError:
            return None


class OpenIntervalPolicy(Enum):
    """What finalize does with intervals that never saw their end."""
    OPEN_ENDED = "open"
    DROP = "drop"
    ERROR = "error"


class UnmatchedEndPolicy(Enum):
    """What the interpreter does with an end record for an unknown token."""
    IGNORE = "ignore"
    ERROR = "error"


# =============================================================================
# TIMELINE EVENTS
# =============================================================================

@dataclass(frozen=True)
class Instant:
    """A single point in time with a short label."""
    ts: int
    label: str


@dataclass(frozen=True)
class Interval:
    """
    A closed span of time.

    INVARIANT: begin <= end
    open_ended marks spans closed at finalize rather than by an end record.
    """
    begin: int
    end: int
    label: str
    open_ended: bool = False

    def __post_init__(self):
        if self.end < self.begin:
            raise ValueError(
                f"Interval end {self.end} precedes begin {self.begin}"
            )

    @property
    def duration(self) -> int:
        return self.end - self.begin


@dataclass(frozen=True)
class Annotation:
    """Free-form diagnostic text at a timestamp. Never affects geometry."""
    ts: int
    text: str


TimelineEvent = Union[Instant, Interval, Annotation]


@dataclass(frozen=True)
class PendingInterval:
    """A begin record waiting for its end. Owned by the interpreter."""
    entity: str
    token: Union[int, str]
    begin: int
    label: str

    def close(self, end: int, open_ended: bool = False) -> Interval:
        return Interval(
            begin=self.begin,
            end=end,
            label=self.label,
            open_ended=open_ended
        )


# =============================================================================
# TIME WINDOW
# =============================================================================

@dataclass(frozen=True)
class TimeWindow:
    """
    Optional [from_ms, to_ms] render filter.
    A missing bound means "use the observed bound of the graph".
    """
    from_ms: Optional[int] = None
    to_ms: Optional[int] = None

    def __post_init__(self):
        if (self.from_ms is not None and self.to_ms is not None
                and self.from_ms > self.to_ms):
            raise ConfigError(
                f"Time window start {self.from_ms} is after end {self.to_ms}",
                code=ErrorCode.INVALID_TIME_RANGE,
                context=(
                    ("from_ms", str(self.from_ms)),
                    ("to_ms", str(self.to_ms)),
                )
            )

    @property
    def is_unbounded(self) -> bool:
        return self.from_ms is None and self.to_ms is None
