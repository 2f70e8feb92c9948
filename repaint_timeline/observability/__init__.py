"""
Observability Layer

RESPONSIBILITY: Logging setup and run counters.

WHAT THIS LAYER MUST NOT DO:
============================
- Modify pipeline behavior
- Make decisions based on collected counts

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves; only the command line calls
configure_logging().
"""

from __future__ import annotations
from typing import Dict, Optional, Tuple
import logging
import os
import sys

LOG_LEVEL_ENV = "REPAINT_TIMELINE_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, stream=None) -> int:
    """
    Install a stderr handler on the package logger.

    The REPAINT_TIMELINE_LOG_LEVEL environment variable wins over the
    verbose flag. Returns the effective level.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    override = os.environ.get(LOG_LEVEL_ENV)
    if override:
        level = logging.getLevelName(override.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    package_logger = logging.getLogger("repaint_timeline")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
    return level


class RunMetrics:
    """
    Append-only counters for one pipeline run.

    Counters only ever grow; there is no reset.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}

    def increment(self, name: str, amount: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + amount

    def get(self, name: str, default: int = 0) -> int:
        return self._counters.get(name, default)

    def snapshot(self) -> Tuple[Tuple[str, int], ...]:
        return tuple(sorted(self._counters.items()))

    def summary(self, prefix: Optional[str] = None) -> str:
        items = self.snapshot()
        if prefix:
            items = tuple(i for i in items if i[0].startswith(prefix))
        return " ".join(f"{name}={value}" for name, value in items)


__all__ = [
    'LOG_LEVEL_ENV',
    'configure_logging',
    'RunMetrics',
]
