"""
Temporal Layer
==============

Forward-only interpretation of records into a per-entity timeline.

INVARIANTS:
- The graph is mutated only by the interpreter
- Same record stream -> same graph (deterministic)
- A finalized graph is read-only

Modules:
- graph: TimelineGraph model and EntityView
- interpreter: record classification and interval pairing
"""

from .graph import TimelineGraph, EntityView, entity_class
from .interpreter import EventInterpreter, InterpreterConfig

__all__ = [
    'TimelineGraph',
    'EntityView',
    'entity_class',
    'EventInterpreter',
    'InterpreterConfig',
]
