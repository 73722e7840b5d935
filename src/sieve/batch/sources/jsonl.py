"""JSON Lines graph source and sink.

One vertex per line::

    {"id": 1, "properties": {"age": 30},
     "out": [{"target": 2, "label": "knows", "properties": {}}],
     "in": [{"source": 3, "label": "knows", "properties": {}}]}
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TextIO

from sieve.errors import GraphFormatError
from sieve.graph import Vertex


class JsonLinesGraphSource:
    """Reads vertices from a JSON Lines file."""

    name = "jsonl"

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> Iterator[Vertex]:
        # Lines are decoded one at a time so encoding errors carry a line number.
        with self.path.open("rb") as f:
            for lineno, raw in enumerate(f, 1):
                try:
                    line = raw.decode("utf-8").strip()
                    if not line:
                        continue
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise ValueError("record is not a JSON object")
                    yield Vertex.from_dict(data)
                except (ValueError, KeyError, TypeError) as e:
                    raise GraphFormatError(f"{self.path}:{lineno}: {e}") from e


class JsonLinesGraphSink:
    """Writes vertices as JSON Lines to a file, or to a stream (stdout by default).

    Every record is serialized before anything is written, so a vertex with
    a property JSON cannot represent leaves an existing output file untouched.
    """

    def __init__(self, path: Path | None = None, stream: TextIO | None = None) -> None:
        self.path = path
        self.stream = stream

    def write(self, vertices: Iterable[Vertex]) -> int:
        lines = [_encode(vertex) for vertex in vertices]
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                f.writelines(lines)
        else:
            (self.stream or sys.stdout).writelines(lines)
        return len(lines)


def _encode(vertex: Vertex) -> str:
    try:
        return json.dumps(vertex.to_dict(), ensure_ascii=False) + "\n"
    except (TypeError, ValueError) as e:
        raise GraphFormatError(f"vertex {vertex.id} cannot be written as JSON: {e}") from e
