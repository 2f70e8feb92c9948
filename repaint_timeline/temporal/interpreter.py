"""
Event Interpreter
=================

Classifies generic values as timeline records and applies them to a
TimelineGraph.

GUARANTEES:
===========
1. Record kinds are a closed enumeration; unknown kinds are ignored
2. Malformed records raise MalformedRecord and abort the run
3. The only interpreter state is the table of in-flight intervals
4. finalize() resolves every in-flight interval by policy, then freezes
   the graph

POLICIES:
=========
- End without a matching begin: UnmatchedEndPolicy (IGNORE keeps a
  diagnostic, ERROR raises UnmatchedEnd)
- Begin never ended: OpenIntervalPolicy (OPEN_ENDED closes at the observed
  maximum, DROP discards with a diagnostic, ERROR raises UnclosedInterval)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import logging

from ..contracts.base import (
    Error, ErrorCode, MalformedRecord, UnclosedInterval, UnmatchedEnd
)
from ..contracts.events import (
    OpenIntervalPolicy, PendingInterval, RecordKind, UnmatchedEndPolicy
)
from ..observability import RunMetrics
from .graph import TimelineGraph

logger = logging.getLogger(__name__)

Token = Union[int, str]


@dataclass(frozen=True)
class InterpreterConfig:
    """
    Interpretation policies.

    WHY FROZEN:
    Policies must not change halfway through a stream.
    """
    unmatched_end: UnmatchedEndPolicy = UnmatchedEndPolicy.IGNORE
    open_interval: OpenIntervalPolicy = OpenIntervalPolicy.OPEN_ENDED
    class_priority: Tuple[str, ...] = ()


# =============================================================================
# FIELD EXTRACTION
# =============================================================================

class _RecordReader:
    """Typed access to the fields of one record map."""

    def __init__(self, record: Mapping[str, Any], index: int, kind: str):
        self._record = record
        self._index = index
        self._kind = kind

    def malformed(self, message: str, code: ErrorCode, field: str) -> MalformedRecord:
        return MalformedRecord(
            f"Record #{self._index} ({self._kind}): {message}",
            code=code,
            context=(
                ("record", str(self._index)),
                ("kind", self._kind),
                ("field", field),
            )
        )

    def _get(self, field: str, required: bool = True) -> Any:
        if field not in self._record or self._record[field] is None:
            if required:
                raise self.malformed(
                    f"missing required field '{field}'",
                    ErrorCode.MISSING_FIELD, field
                )
            return None
        return self._record[field]

    def timestamp(self, field: str = "ts") -> int:
        value = self._get(field)
        if isinstance(value, bool) or not isinstance(value, int):
            raise self.malformed(
                f"field '{field}' must be an integer, got {type(value).__name__}",
                ErrorCode.WRONG_FIELD_TYPE, field
            )
        return value

    def token(self, field: str = "token") -> Token:
        value = self._get(field)
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise self.malformed(
                f"field '{field}' must be an integer or string, "
                f"got {type(value).__name__}",
                ErrorCode.WRONG_FIELD_TYPE, field
            )
        return value

    def text(self, field: str) -> str:
        value = self._get(field)
        if not isinstance(value, str):
            raise self.malformed(
                f"field '{field}' must be a string, got {type(value).__name__}",
                ErrorCode.WRONG_FIELD_TYPE, field
            )
        return value

    def entity(self, field: str = "entity", required: bool = True) -> Optional[str]:
        """
        Entity key: a string, or a {"type": ..., "id": ...} map that
        normalizes to "type.id".
        """
        value = self._get(field, required=required)
        if value is None:
            return None
        if isinstance(value, str):
            if not value:
                raise self.malformed(
                    f"field '{field}' must not be empty",
                    ErrorCode.WRONG_FIELD_TYPE, field
                )
            return value
        if isinstance(value, dict):
            type_name = value.get("type")
            ident = value.get("id")
            if not isinstance(type_name, str) or not type_name:
                raise self.malformed(
                    f"composite '{field}' needs a string 'type'",
                    ErrorCode.WRONG_FIELD_TYPE, field
                )
            if isinstance(ident, bool) or not isinstance(ident, (int, str)):
                raise self.malformed(
                    f"composite '{field}' needs an integer or string 'id'",
                    ErrorCode.WRONG_FIELD_TYPE, field
                )
            return f"{type_name}.{ident}"
        raise self.malformed(
            f"field '{field}' must be a string or a type/id map, "
            f"got {type(value).__name__}",
            ErrorCode.WRONG_FIELD_TYPE, field
        )


# =============================================================================
# INTERPRETER
# =============================================================================

class EventInterpreter:
    """
    Forward-only record interpreter.

    Call process() once per value in stream order, then finalize() once.
    """

    def __init__(
        self,
        config: Optional[InterpreterConfig] = None,
        metrics: Optional[RunMetrics] = None
    ):
        self._config = config or InterpreterConfig()
        self._metrics = metrics or RunMetrics()
        self._in_flight: Dict[Token, PendingInterval] = {}
        self._diagnostics: List[Error] = []
        self._index = 0
        self._handlers: Dict[RecordKind, Callable[[_RecordReader, TimelineGraph], None]] = {
            RecordKind.BEGIN: self._on_begin,
            RecordKind.END: self._on_end,
            RecordKind.INSTANT: self._on_instant,
            RecordKind.INFO: self._on_info,
            RecordKind.DESCRIBE: self._on_describe,
        }

    @property
    def config(self) -> InterpreterConfig:
        return self._config

    @property
    def diagnostics(self) -> Tuple[Error, ...]:
        return tuple(self._diagnostics)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def process(self, value: Any, graph: TimelineGraph) -> None:
        """Apply one generic value to the graph."""
        self._index += 1

        if not isinstance(value, dict):
            raise MalformedRecord(
                f"Record #{self._index}: expected a map, got {type(value).__name__}",
                code=ErrorCode.NOT_A_RECORD,
                context=(("record", str(self._index)),)
            )

        raw_kind = value.get("kind")
        if raw_kind is None:
            raise MalformedRecord(
                f"Record #{self._index}: missing required field 'kind'",
                code=ErrorCode.MISSING_FIELD,
                context=(("record", str(self._index)), ("field", "kind"))
            )
        if not isinstance(raw_kind, str):
            raise MalformedRecord(
                f"Record #{self._index}: field 'kind' must be a string",
                code=ErrorCode.WRONG_FIELD_TYPE,
                context=(("record", str(self._index)), ("field", "kind"))
            )

        kind = RecordKind.lookup(raw_kind)
        if kind is None:
            self._metrics.increment("records.ignored")
            logger.debug("Ignoring record #%d of unknown kind %r", self._index, raw_kind)
            return

        self._handlers[kind](_RecordReader(value, self._index, raw_kind), graph)
        self._metrics.increment(f"records.{kind.value}")

    def finalize(self, graph: TimelineGraph) -> None:
        """Resolve in-flight intervals and freeze the graph."""
        policy = self._config.open_interval

        for token, pending in list(self._in_flight.items()):
            if policy is OpenIntervalPolicy.ERROR:
                raise UnclosedInterval(
                    f"Interval {token!r} ({pending.label}) on {pending.entity} "
                    f"begun at {pending.begin} was never ended",
                    code=ErrorCode.UNCLOSED_INTERVAL,
                    at_ms=pending.begin,
                    context=(("entity", pending.entity), ("token", str(token)))
                )

            if policy is OpenIntervalPolicy.OPEN_ENDED:
                _, max_ms = graph.observed_bounds()
                graph.close_interval(pending, max_ms, open_ended=True)
                self._metrics.increment("intervals.open_ended")
            else:
                self._diagnostics.append(Error(
                    code=ErrorCode.UNCLOSED_INTERVAL,
                    message=f"Dropped unclosed interval {token!r} on {pending.entity}",
                    at_ms=pending.begin,
                    context=(("entity", pending.entity), ("token", str(token)))
                ))
                self._metrics.increment("intervals.dropped")
            del self._in_flight[token]

        if self._diagnostics:
            logger.info("Interpretation finished with %d diagnostics", len(self._diagnostics))

        graph.finalize(self._config.class_priority)

    # -------------------------------------------------------------------------
    # Record handlers
    # -------------------------------------------------------------------------

    def _on_begin(self, reader: _RecordReader, graph: TimelineGraph) -> None:
        entity = reader.entity()
        token = reader.token()
        ts = reader.timestamp()
        label = reader.text("label")

        if token in self._in_flight:
            raise reader.malformed(
                f"token {token!r} is already open on {self._in_flight[token].entity}",
                ErrorCode.DUPLICATE_TOKEN, "token"
            )

        self._in_flight[token] = graph.open_interval(entity, token, ts, label)

    def _on_end(self, reader: _RecordReader, graph: TimelineGraph) -> None:
        token = reader.token()
        ts = reader.timestamp()
        entity = reader.entity(required=False)

        pending = self._in_flight.get(token)
        if pending is None:
            self._unmatched_end(token, ts, entity)
            return

        if entity is not None and entity != pending.entity:
            raise reader.malformed(
                f"token {token!r} was opened on {pending.entity}, ended on {entity}",
                ErrorCode.ENTITY_MISMATCH, "entity"
            )

        graph.close_interval(pending, ts)
        del self._in_flight[token]

    def _on_instant(self, reader: _RecordReader, graph: TimelineGraph) -> None:
        entity = reader.entity()
        ts = reader.timestamp()
        graph.insert_instant(entity, ts, reader.text("label"))

    def _on_info(self, reader: _RecordReader, graph: TimelineGraph) -> None:
        entity = reader.entity()
        ts = reader.timestamp()
        graph.insert_annotation(entity, ts, reader.text("text"))

    def _on_describe(self, reader: _RecordReader, graph: TimelineGraph) -> None:
        entity = reader.entity()
        graph.describe_entity(entity, reader.text("name"))

    def _unmatched_end(self, token: Token, ts: int, entity: Optional[str]) -> None:
        context = (("token", str(token)), ("entity", entity or ""))

        if self._config.unmatched_end is UnmatchedEndPolicy.ERROR:
            raise UnmatchedEnd(
                f"Record #{self._index}: end for token {token!r} without a matching begin",
                code=ErrorCode.UNMATCHED_END,
                at_ms=ts,
                context=context
            )

        self._diagnostics.append(Error(
            code=ErrorCode.UNMATCHED_END,
            message=f"End for token {token!r} without a matching begin",
            at_ms=ts,
            context=context
        ))
        self._metrics.increment("records.unmatched_end")
        logger.warning(
            "Record #%d: ignoring end for token %r at %d ms with no matching begin",
            self._index, token, ts
        )
