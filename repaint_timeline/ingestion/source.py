"""
Generic Value Stream Source
===========================

Incremental decoding of concatenated JSON values from a text or byte stream.

Each decoding step reports one of three outcomes:
- VALUE: a complete top-level value was parsed
- NEED_MORE: the buffer holds only part of a value
- MALFORMED: the stream ended and the buffer is not valid JSON

The source knows nothing about timeline records. It yields generic values
(dicts, lists, strings, numbers) one at a time, in stream order.
"""

from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import Any, IO, Iterator, Optional, Tuple, Union
import codecs
import json
import logging
import re

from ..contracts.base import DecodeError, SourceError, ErrorCode

logger = logging.getLogger(__name__)

GenericValue = Any

DEFAULT_CHUNK_SIZE = 8192

_WHITESPACE = re.compile(r'[ \t\n\r]*')


class ParseStatus(Enum):
    VALUE = "value"
    NEED_MORE = "need_more"
    MALFORMED = "malformed"


class IncrementalDecoder:
    """
    Buffering JSON decoder for a stream of top-level values.

    The buffer is compacted on every feed so that memory stays bounded by
    the largest single value plus one chunk.
    """

    def __init__(self):
        self._decoder = json.JSONDecoder()
        self._buffer = ""
        self._pos = 0
        self._consumed = 0
        self._last_error: Optional[json.JSONDecodeError] = None

    def feed(self, text: str) -> None:
        if self._pos:
            self._consumed += self._pos
            self._buffer = self._buffer[self._pos:]
            self._pos = 0
        self._buffer += text

    @property
    def offset(self) -> int:
        """Characters consumed from the start of the stream."""
        return self._consumed + self._pos

    @property
    def last_error(self) -> Optional[json.JSONDecodeError]:
        return self._last_error

    def has_pending(self) -> bool:
        self._skip_whitespace()
        return self._pos < len(self._buffer)

    def next_value(self, final: bool = False) -> Tuple[ParseStatus, GenericValue]:
        """
        Try to decode the next value from the buffer.

        Args:
            final: True once the underlying stream is exhausted. Only then
                can a parse failure be told apart from a truncated value.
        """
        if not self.has_pending():
            return (ParseStatus.NEED_MORE, None)

        try:
            value, end = self._decoder.raw_decode(self._buffer, self._pos)
        except json.JSONDecodeError as err:
            if final:
                self._last_error = err
                return (ParseStatus.MALFORMED, None)
            return (ParseStatus.NEED_MORE, None)

        # "12" may be the head of "1234"
        if (not final and end == len(self._buffer)
                and isinstance(value, (int, float))
                and not isinstance(value, bool)):
            return (ParseStatus.NEED_MORE, None)

        self._pos = end
        return (ParseStatus.VALUE, value)

    def _skip_whitespace(self) -> None:
        self._pos = _WHITESPACE.match(self._buffer, self._pos).end()


def iter_values(
    stream: IO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    name: str = "<stream>"
) -> Iterator[GenericValue]:
    """
    Yield top-level values from a text or binary stream.

    Raises:
        SourceError: reading the stream failed
        DecodeError: the stream is not a sequence of JSON values
    """
    decoder = IncrementalDecoder()
    byte_decoder = None
    final = False
    count = 0

    while True:
        status, value = decoder.next_value(final=final)

        if status is ParseStatus.VALUE:
            count += 1
            yield value
            continue

        if status is ParseStatus.MALFORMED:
            err = decoder.last_error
            raise DecodeError(
                f"Malformed JSON in {name} at offset {decoder.offset}: "
                f"{err.msg if err else 'unexpected input'}",
                code=ErrorCode.MALFORMED_PAYLOAD,
                context=(
                    ("source", name),
                    ("offset", str(decoder.offset)),
                    ("values_read", str(count)),
                )
            )

        if final:
            logger.debug("Read %d values from %s", count, name)
            return

        try:
            raw = stream.read(chunk_size)
        except OSError as err:
            raise SourceError(
                f"Failed to read {name}: {err}",
                code=ErrorCode.SOURCE_UNREADABLE,
                context=(("source", name),)
            ) from err

        final = not raw
        text = raw
        if isinstance(raw, bytes):
            if byte_decoder is None:
                byte_decoder = codecs.getincrementaldecoder("utf-8")()
            try:
                text = byte_decoder.decode(raw, final=final)
            except UnicodeDecodeError as err:
                raise DecodeError(
                    f"Invalid UTF-8 in {name}: {err.reason}",
                    code=ErrorCode.MALFORMED_PAYLOAD,
                    context=(("source", name),)
                ) from err

        if text:
            decoder.feed(text)


def open_values(
    path: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[GenericValue]:
    """Yield top-level values from a file. Missing files are a SourceError."""
    path = Path(path)
    try:
        f = open(path, 'rb')
    except OSError as err:
        raise SourceError(
            f"Cannot open input {path}: {err.strerror or err}",
            code=ErrorCode.SOURCE_UNREADABLE,
            context=(("source", str(path)),)
        ) from err

    with f:
        yield from iter_values(f, chunk_size=chunk_size, name=str(path))
