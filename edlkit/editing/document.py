"""
Document model — a single bytes buffer plus line bookkeeping.

Offsets are byte offsets into the current content.  Line starts are
recomputed after every splice so positions always reflect the latest
state of the buffer.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class ByteRange:
    """Half-open ``[start, end)`` byte range."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, other: "ByteRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "ByteRange") -> bool:
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class Pos:
    """1-indexed line, 0-indexed byte column."""
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.line}:{self.col}"


def compute_line_starts(content: bytes) -> list[int]:
    """Return the byte offset at which each line begins."""
    starts = [0]
    idx = content.find(b"\n")
    while idx != -1:
        starts.append(idx + 1)
        idx = content.find(b"\n", idx + 1)
    return starts


class Document:
    """Mutable byte buffer with line/column lookups."""

    def __init__(self, content: bytes = b"") -> None:
        self._content = bytes(content)
        self._line_starts = compute_line_starts(self._content)

    @property
    def content(self) -> bytes:
        return self._content

    def __len__(self) -> int:
        return len(self._content)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def full_range(self) -> ByteRange:
        return ByteRange(0, len(self._content))

    def text(self, rng: ByteRange) -> bytes:
        return self._content[rng.start:rng.end]

    def line_range(self, line: int) -> ByteRange:
        """Range of *line* (1-indexed), excluding its trailing newline."""
        idx = line - 1
        if idx < 0 or idx >= len(self._line_starts):
            raise IndexError(
                f"line {line} out of range (1-{self.line_count})"
            )
        start = self._line_starts[idx]
        if idx + 1 < len(self._line_starts):
            end = self._line_starts[idx + 1] - 1
        else:
            end = len(self._content)
        return ByteRange(start, end)

    def pos_to_offset(self, line: int, col: int) -> int:
        """Convert a ``line:col`` position to a byte offset.

        The column may point at the line's newline (end of line) but not
        beyond it.
        """
        line_rng = self.line_range(line)
        if col < 0 or col > len(line_rng):
            raise IndexError(
                f"column {col} out of range for line {line} (0-{len(line_rng)})"
            )
        return line_rng.start + col

    def offset_to_pos(self, offset: int) -> Pos:
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        idx = max(idx, 0)
        return Pos(line=idx + 1, col=offset - self._line_starts[idx])

    def splice(self, rng: ByteRange, replacement: bytes) -> None:
        """Replace the bytes of *rng* with *replacement*."""
        if rng.end > len(self._content):
            raise IndexError(
                f"range {rng} exceeds document length {len(self._content)}"
            )
        self._content = (
            self._content[:rng.start] + replacement + self._content[rng.end:]
        )
        self._line_starts = compute_line_starts(self._content)
