"""Indented BEGIN/END tracing of nested parse steps."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

_INDENT = "\t"


class Tracer:
    """Writes nested BEGIN/END lines, indented by one tab per level."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self.level = 0

    @contextmanager
    def trace(self, message: str) -> Iterator[str]:
        """Print ``BEGIN message`` on entry and ``END message`` on exit."""
        self.level += 1
        self._print("BEGIN " + message)
        try:
            yield message
        finally:
            self._print("END " + message)
            self.level -= 1

    def _print(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(_INDENT * max(self.level - 1, 0) + text + "\n")