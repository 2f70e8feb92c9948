"""
Ingestion Layer

RESPONSIBILITY: Turn raw input (files, byte or text streams) into a
sequence of generic values. No knowledge of timeline records.
"""

from .source import (
    GenericValue,
    ParseStatus,
    IncrementalDecoder,
    iter_values,
    open_values,
    DEFAULT_CHUNK_SIZE,
)

__all__ = [
    'GenericValue',
    'ParseStatus',
    'IncrementalDecoder',
    'iter_values',
    'open_values',
    'DEFAULT_CHUNK_SIZE',
]
