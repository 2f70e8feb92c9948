"""
Timeline Graph Model
====================

In-memory per-entity event history with running global time bounds.

INVARIANTS:
- Entities are created on first reference and never removed
- Each entity's events keep arrival order
- observed_bounds() covers every inserted timestamp
- Closed intervals satisfy begin <= end
- After finalize() the graph is read-only

LIFECYCLE:
==========
created empty -> mutated by the interpreter -> finalize() -> read by the
renderer. The renderer never mutates the graph.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..contracts.base import ErrorCode, GraphFinalized, MalformedRecord
from ..contracts.events import (
    Annotation, Instant, Interval, PendingInterval, TimelineEvent
)


def entity_class(key: str) -> str:
    """Class of an entity key: the text before the first dot."""
    return key.split('.', 1)[0]


@dataclass(frozen=True)
class EntityView:
    """Read-only view of one entity and its events."""
    key: str
    name: Optional[str]
    events: Tuple[TimelineEvent, ...]

    @property
    def label(self) -> str:
        return self.name or self.key

    @property
    def intervals(self) -> Tuple[Interval, ...]:
        return tuple(e for e in self.events if isinstance(e, Interval))

    @property
    def instants(self) -> Tuple[Instant, ...]:
        return tuple(e for e in self.events if isinstance(e, Instant))

    @property
    def annotations(self) -> Tuple[Annotation, ...]:
        return tuple(e for e in self.events if isinstance(e, Annotation))


class TimelineGraph:
    """
    Mapping from entity key to its ordered event sequence.

    Only the interpreter writes to a graph. Display order is insertion order
    of first reference until finalize() fixes it (optionally grouping by
    entity class first).
    """

    def __init__(self):
        self._events: Dict[str, List[TimelineEvent]] = {}
        self._names: Dict[str, str] = {}
        self._min_ms: Optional[int] = None
        self._max_ms: Optional[int] = None
        self._display_order: Optional[Tuple[str, ...]] = None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert_instant(self, entity: str, ts: int, label: str) -> Instant:
        event = Instant(ts=ts, label=label)
        self._append(entity, event)
        self._observe(ts)
        return event

    def insert_annotation(self, entity: str, ts: int, text: str) -> Annotation:
        event = Annotation(ts=ts, text=text)
        self._append(entity, event)
        self._observe(ts)
        return event

    def open_interval(
        self,
        entity: str,
        token: Union[int, str],
        ts: int,
        label: str
    ) -> PendingInterval:
        """
        Register the begin of an interval.

        The interval is not part of the entity's sequence until it is
        closed; the caller keeps the returned PendingInterval.
        """
        self._touch(entity)
        self._observe(ts)
        return PendingInterval(entity=entity, token=token, begin=ts, label=label)

    def close_interval(
        self,
        pending: PendingInterval,
        end: int,
        open_ended: bool = False
    ) -> Interval:
        if end < pending.begin:
            raise MalformedRecord(
                f"Interval {pending.token!r} on {pending.entity} ends at "
                f"{end}, before its begin at {pending.begin}",
                code=ErrorCode.NEGATIVE_INTERVAL,
                at_ms=end,
                context=(
                    ("entity", pending.entity),
                    ("token", str(pending.token)),
                    ("begin", str(pending.begin)),
                )
            )
        interval = pending.close(end, open_ended=open_ended)
        self._append(pending.entity, interval)
        self._observe(end)
        return interval

    def describe_entity(self, entity: str, name: str) -> None:
        self._touch(entity)
        self._names[entity] = name

    def finalize(self, class_priority: Sequence[str] = ()) -> None:
        """
        Fix the entity display order and freeze the graph.

        Entities whose class appears in class_priority come first, in that
        class order; first appearance breaks ties.
        """
        self._check_writable()
        rank = {cls: i for i, cls in enumerate(class_priority)}
        first_seen = {key: i for i, key in enumerate(self._events)}
        self._display_order = tuple(sorted(
            self._events,
            key=lambda k: (rank.get(entity_class(k), len(rank)), first_seen[k])
        ))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def is_finalized(self) -> bool:
        return self._display_order is not None

    @property
    def entity_count(self) -> int:
        return len(self._events)

    @property
    def event_count(self) -> int:
        return sum(len(events) for events in self._events.values())

    def observed_bounds(self) -> Optional[Tuple[int, int]]:
        """(min_ms, max_ms) over every inserted timestamp, None if empty."""
        if self._min_ms is None:
            return None
        return (self._min_ms, self._max_ms)

    def entity(self, key: str) -> EntityView:
        return EntityView(
            key=key,
            name=self._names.get(key),
            events=tuple(self._events[key])
        )

    def entities_in_display_order(self) -> Tuple[EntityView, ...]:
        order = self._display_order
        if order is None:
            order = tuple(self._events)
        return tuple(self.entity(key) for key in order)

    def labels(self) -> Tuple[str, ...]:
        """Sorted distinct labels of all intervals and instants."""
        found = set()
        for events in self._events.values():
            for event in events:
                if isinstance(event, (Interval, Instant)):
                    found.add(event.label)
        return tuple(sorted(found))

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _check_writable(self) -> None:
        if self._display_order is not None:
            raise GraphFinalized("Timeline graph is finalized and read-only")

    def _touch(self, entity: str) -> List[TimelineEvent]:
        self._check_writable()
        return self._events.setdefault(entity, [])

    def _append(self, entity: str, event: TimelineEvent) -> None:
        self._touch(entity).append(event)

    def _observe(self, ts: int) -> None:
        if self._min_ms is None or ts < self._min_ms:
            self._min_ms = ts
        if self._max_ms is None or ts > self._max_ms:
            self._max_ms = ts
