"""
Pattern types and the pattern matcher.

A pattern is one of:

* ``Literal`` — exact heredoc bytes, matched byte-for-byte;
* ``Regex`` — a ``/pattern/flags`` literal, compiled at parse time;
* a position — ``LineStart`` (a whole line), ``LineCol``, ``Bof``, ``Eof``;
* ``Range`` — two positions, resolving to one span from the start of the
  first to the end of the second.

:func:`match` returns the sorted, non-overlapping ranges a pattern matches
inside a search scope.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .document import ByteRange, Document
from .errors import SelectionError

# Flag letters accepted after a regex literal.  ``g``, ``u`` and ``y``
# have no effect: every search is global.
REGEX_FLAGS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
}

_LITERAL_PREVIEW = 40


@dataclass(frozen=True)
class Literal:
    text: bytes

    def render(self) -> str:
        preview = self.text.decode("utf-8", errors="replace")
        first = preview.split("\n", 1)[0]
        if len(first) > _LITERAL_PREVIEW:
            first = first[:_LITERAL_PREVIEW] + "..."
        elif "\n" in preview:
            first += "..."
        return f"<<heredoc {first!r}"


@dataclass(frozen=True)
class Regex:
    source: str
    flags: str = ""
    compiled: re.Pattern = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.compiled is None:
            object.__setattr__(self, "compiled", compile_regex(self.source, self.flags))

    def render(self) -> str:
        return f"/{self.source}/{self.flags}"


@dataclass(frozen=True)
class LineStart:
    """The whole of line *line* (1-indexed), excluding its newline."""
    line: int

    def render(self) -> str:
        return str(self.line)


@dataclass(frozen=True)
class LineCol:
    """Zero-width position at ``line:col``."""
    line: int
    col: int

    def render(self) -> str:
        return f"{self.line}:{self.col}"


@dataclass(frozen=True)
class Bof:
    def render(self) -> str:
        return "bof"


@dataclass(frozen=True)
class Eof:
    def render(self) -> str:
        return "eof"


Position = Union[LineStart, LineCol, Bof, Eof]
POSITION_TYPES = (LineStart, LineCol, Bof, Eof)


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    def __post_init__(self) -> None:
        if not isinstance(self.start, POSITION_TYPES) or not isinstance(
            self.end, POSITION_TYPES
        ):
            raise TypeError("Range endpoints must be positions")

    def render(self) -> str:
        return f"{self.start.render()}-{self.end.render()}"


Pattern = Union[Literal, Regex, LineStart, LineCol, Bof, Eof, Range]


def compile_regex(source: str, flags: str = "") -> re.Pattern:
    """Compile a regex literal into a text pattern.

    Matching runs on decoded text so character classes and ``\\w`` see whole
    characters, never single bytes of a multi-byte sequence.

    Raises ``ValueError`` for unknown flags and ``re.error`` for invalid
    syntax; the parser turns both into parse errors.
    """
    value = 0
    for flag in flags:
        if flag not in REGEX_FLAGS:
            raise ValueError(f"unknown regex flag {flag!r}")
        value |= REGEX_FLAGS[flag]
    return re.compile(source, value)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def match(doc: Document, pattern: Pattern, scope: ByteRange) -> list[ByteRange]:
    """Return every match of *pattern* that lies entirely inside *scope*.

    Results are ordered by position and never overlap.
    """
    if isinstance(pattern, Literal):
        return _match_literal(doc.content, pattern.text, scope)
    if isinstance(pattern, Regex):
        return _match_regex(doc.content, pattern.compiled, scope)
    rng = resolve_position_pattern(doc, pattern)
    if scope.contains(rng):
        return [rng]
    return []


def match_all(
    doc: Document,
    pattern: Pattern,
    scopes: list[ByteRange],
) -> list[ByteRange]:
    """Union of matches inside each scope, sorted and de-duplicated."""
    results: list[ByteRange] = []
    for scope in scopes:
        results.extend(match(doc, pattern, scope))
    return sorted(set(results))


def _match_literal(content: bytes, text: bytes, scope: ByteRange) -> list[ByteRange]:
    results: list[ByteRange] = []
    if not text:
        return results
    idx = content.find(text, scope.start, scope.end)
    while idx != -1:
        results.append(ByteRange(idx, idx + len(text)))
        idx = content.find(text, idx + len(text), scope.end)
    return results


def _match_regex(
    content: bytes,
    compiled: re.Pattern,
    scope: ByteRange,
) -> list[ByteRange]:
    """Run *compiled* over the scope's text only.

    The scope is decoded on its own, so ``^`` and ``\\A`` anchor at the scope
    start and lookbehinds cannot see bytes before it.  Undecodable bytes map
    to one surrogate each, which keeps the character to byte mapping exact.
    """
    text = content[scope.start:scope.end].decode("utf-8", errors="surrogateescape")
    results: list[ByteRange] = []
    char_pos = 0
    byte_pos = scope.start

    def to_byte(index: int) -> int:
        nonlocal char_pos, byte_pos
        byte_pos += _encoded_len(text[char_pos:index])
        char_pos = index
        return byte_pos

    for m in compiled.finditer(text):
        start = to_byte(m.start())
        results.append(ByteRange(start, to_byte(m.end())))
    return results


def _encoded_len(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogateescape"))


def resolve_position_pattern(doc: Document, pattern: Pattern) -> ByteRange:
    """Resolve a position or range pattern against the current content."""
    try:
        if isinstance(pattern, Range):
            start = _resolve_position(doc, pattern.start).start
            end = _resolve_position(doc, pattern.end).end
            if end < start:
                raise SelectionError(
                    f"range end {pattern.end.render()} precedes start "
                    f"{pattern.start.render()}",
                    kind=SelectionError.OUT_OF_RANGE,
                )
            return ByteRange(start, end)
        return _resolve_position(doc, pattern)
    except IndexError as exc:
        raise SelectionError(str(exc), kind=SelectionError.OUT_OF_RANGE) from exc


def _resolve_position(doc: Document, pos: Position) -> ByteRange:
    if isinstance(pos, LineStart):
        return doc.line_range(pos.line)
    if isinstance(pos, LineCol):
        offset = doc.pos_to_offset(pos.line, pos.col)
        return ByteRange(offset, offset)
    if isinstance(pos, Bof):
        return ByteRange(0, 0)
    if isinstance(pos, Eof):
        return ByteRange(len(doc), len(doc))
    raise TypeError(f"Not a position pattern: {pos!r}")
