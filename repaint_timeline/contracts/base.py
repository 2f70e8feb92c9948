"""
Base Contracts and Shared Types

Foundational types used across all layers: error codes, the immutable
Error record and the exception hierarchy raised by the pipeline.

ERROR STATES (Explicit, never silent):
======================================
- Every failure carries an ErrorCode
- Exceptions convert to immutable Error records for diagnostics
- Every error is fatal for the run; nothing here retries
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    No silent fallbacks - every error state is enumerated.
    """
    # Source errors
    SOURCE_UNREADABLE = auto()
    MALFORMED_PAYLOAD = auto()

    # Interpretation errors
    NOT_A_RECORD = auto()
    MISSING_FIELD = auto()
    WRONG_FIELD_TYPE = auto()
    DUPLICATE_TOKEN = auto()
    ENTITY_MISMATCH = auto()
    NEGATIVE_INTERVAL = auto()
    UNMATCHED_END = auto()
    UNCLOSED_INTERVAL = auto()

    # Model errors
    GRAPH_FINALIZED = auto()

    # Configuration errors
    INVALID_TIME_RANGE = auto()
    MISSING_TARGET = auto()

    # Render errors
    SINK_FAILURE = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    at_ms: Optional[int] = None
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            at_ms=self.at_ms,
            context=self.context + ((key, value),)
        )


# =============================================================================
# EXCEPTIONS
# =============================================================================

class TimelineError(Exception):
    """Base class for every failure raised by the pipeline."""

    default_code = ErrorCode.MALFORMED_PAYLOAD

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        at_ms: Optional[int] = None,
        context: Tuple[Tuple[str, str], ...] = ()
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.at_ms = at_ms
        self.context = tuple(context)

    def as_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            at_ms=self.at_ms,
            context=self.context
        )


class SourceError(TimelineError):
    """Raw input could not be read."""
    default_code = ErrorCode.SOURCE_UNREADABLE


class DecodeError(TimelineError):
    """Input is not well-formed structured data."""
    default_code = ErrorCode.MALFORMED_PAYLOAD


class InterpretError(TimelineError):
    """A structurally valid value violates the timeline record schema."""
    default_code = ErrorCode.NOT_A_RECORD


class MalformedRecord(InterpretError):
    pass


class UnmatchedEnd(InterpretError):
    """End record without an in-flight begin (strict policy only)."""
    default_code = ErrorCode.UNMATCHED_END


class UnclosedInterval(InterpretError):
    """Begin record never closed by end of stream (strict policy only)."""
    default_code = ErrorCode.UNCLOSED_INTERVAL


class GraphFinalized(TimelineError):
    default_code = ErrorCode.GRAPH_FINALIZED


class ConfigError(TimelineError, ValueError):
    """Invalid run configuration, reported before processing begins."""
    default_code = ErrorCode.INVALID_TIME_RANGE


class RenderError(TimelineError):
    default_code = ErrorCode.SINK_FAILURE


class SinkError(RenderError):
    """Output sink rejected the rendered document."""
    default_code = ErrorCode.SINK_FAILURE
