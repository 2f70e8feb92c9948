"""
Record Fixtures

Builders for timeline records as they appear in the input stream.

RULES:
======
1. Every builder returns a plain dict, exactly as a JSON decoder would
2. Scenarios are explicit lists, never random
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
import json


def begin(entity: Any, token: Any, ts: int, label: str = "repaint") -> Dict[str, Any]:
    return {"kind": "begin", "entity": entity, "token": token, "ts": ts, "label": label}


def end(token: Any, ts: int, entity: Optional[Any] = None) -> Dict[str, Any]:
    record = {"kind": "end", "token": token, "ts": ts}
    if entity is not None:
        record["entity"] = entity
    return record


def instant(entity: Any, ts: int, label: str = "vblank") -> Dict[str, Any]:
    return {"kind": "instant", "entity": entity, "ts": ts, "label": label}


def info(entity: Any, ts: int, text: str) -> Dict[str, Any]:
    return {"kind": "info", "entity": entity, "ts": ts, "text": text}


def describe(entity: Any, name: str) -> Dict[str, Any]:
    return {"kind": "describe", "entity": entity, "name": name}


def to_stream_text(records: Iterable[Dict[str, Any]]) -> str:
    """Serialize records the way the compositor writes them: one per line."""
    return "".join(json.dumps(r) + "\n" for r in records)


# =============================================================================
# SCENARIOS
# =============================================================================

SINGLE_REPAINT: List[Dict[str, Any]] = [
    begin("output.0", 1, 0, "repaint"),
    end(1, 16, "output.0"),
]

TWO_OUTPUTS: List[Dict[str, Any]] = [
    begin("output.0", 1, 0, "repaint"),
    end(1, 10, "output.0"),
    begin("output.1", 2, 20, "repaint"),
    end(2, 30, "output.1"),
]

REPAINT_LOOP: List[Dict[str, Any]] = [
    describe({"type": "output", "id": 0}, "HDMI-A-1"),
    begin({"type": "output", "id": 0}, 100, 0, "repaint"),
    begin("surface.7", "commit-1", 2, "commit"),
    instant("surface.7", 3, "attach"),
    end("commit-1", 5, "surface.7"),
    begin("output.0", 101, 6, "flush"),
    end(101, 9),
    end(100, 12, "output.0"),
    instant("output.0", 16, "vblank"),
    info("output.0", 16, "frame 1 presented"),
    {"kind": "gpu_done", "entity": "output.0", "ts": 14},
]
