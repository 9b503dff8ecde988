"""
Selection engine — operators that compute a new selection.

Every operator is a pure function of ``(document, selection, pattern)``
returning a new sorted, non-overlapping list of ranges, or raising
:class:`SelectionError`.  The current selection is never mutated in place.
"""

from __future__ import annotations

import logging

from .commands import (
    ExtendBack, ExtendForward, Narrow, NarrowOne, PatternCommand, RetainFirst,
    RetainLast, RetainNth, Select, SelectNext, SelectOne, SelectPrev,
)
from .document import ByteRange, Document
from .errors import SelectionError
from .patterns import Pattern, match, match_all

logger = logging.getLogger(__name__)


def normalize(ranges: list[ByteRange]) -> list[ByteRange]:
    """Sort and de-duplicate *ranges*; overlapping ranges are a bug."""
    result = sorted(set(ranges))
    for prev, cur in zip(result, result[1:]):
        if prev.overlaps(cur):
            raise ValueError(f"Overlapping selection ranges {prev} and {cur}")
    return result


def _require_selection(selection: list[ByteRange]) -> None:
    if not selection:
        raise SelectionError("no selection", kind=SelectionError.EMPTY_SELECTION)


def _exactly_one(matches: list[ByteRange], where: str = "") -> list[ByteRange]:
    if not matches:
        raise SelectionError(f"no matches{where}", kind=SelectionError.NO_MATCH, count=0)
    if len(matches) > 1:
        raise SelectionError(
            f"{len(matches)} matches found, expected exactly 1",
            kind=SelectionError.MULTIPLE_MATCHES,
            count=len(matches),
        )
    return matches


def _matches_after(doc: Document, pattern: Pattern, anchor: ByteRange) -> list[ByteRange]:
    scope = ByteRange(anchor.end, len(doc))
    return [m for m in match(doc, pattern, scope) if m != anchor]


def _matches_before(doc: Document, pattern: Pattern, anchor: ByteRange) -> list[ByteRange]:
    scope = ByteRange(0, anchor.start)
    return [m for m in match(doc, pattern, scope) if m != anchor]


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

def select(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    """All matches in the whole document; the current selection is ignored."""
    matches = match(doc, pattern, doc.full_range())
    if not matches:
        raise SelectionError("no matches", kind=SelectionError.NO_MATCH, count=0)
    return matches


def select_one(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    return _exactly_one(match(doc, pattern, doc.full_range()))


def narrow(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    """Matches found inside the selected ranges only."""
    _require_selection(selection)
    matches = match_all(doc, pattern, selection)
    if not matches:
        raise SelectionError(
            "no matches within selection", kind=SelectionError.NO_MATCH, count=0
        )
    return matches


def narrow_one(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    _require_selection(selection)
    return _exactly_one(match_all(doc, pattern, selection), " within selection")


def retain_first(selection: list[ByteRange]) -> list[ByteRange]:
    _require_selection(selection)
    return [selection[0]]


def retain_last(selection: list[ByteRange]) -> list[ByteRange]:
    _require_selection(selection)
    return [selection[-1]]


def retain_nth(selection: list[ByteRange], n: int) -> list[ByteRange]:
    """Keep the *n*-th range (0-indexed, negative counts from the end)."""
    _require_selection(selection)
    idx = n + len(selection) if n < 0 else n
    if idx < 0 or idx >= len(selection):
        raise SelectionError(
            f"index {n} out of range ({len(selection)} selections)",
            kind=SelectionError.OUT_OF_RANGE,
        )
    return [selection[idx]]


def select_next(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    _require_selection(selection)
    matches = _matches_after(doc, pattern, selection[-1])
    if not matches:
        raise SelectionError(
            "no matches after selection", kind=SelectionError.NO_MATCH, count=0
        )
    return [matches[0]]


def select_prev(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    _require_selection(selection)
    matches = _matches_before(doc, pattern, selection[0])
    if not matches:
        raise SelectionError(
            "no matches before selection", kind=SelectionError.NO_MATCH, count=0
        )
    return [matches[-1]]


def extend_forward(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    """Grow the selection up to the end of the next match after it."""
    _require_selection(selection)
    matches = _matches_after(doc, pattern, selection[-1])
    if not matches:
        raise SelectionError(
            "no matches after selection", kind=SelectionError.NO_MATCH, count=0
        )
    return [ByteRange(selection[0].start, matches[0].end)]


def extend_back(doc: Document, selection: list[ByteRange], pattern: Pattern) -> list[ByteRange]:
    """Grow the selection back to the start of the nearest match before it."""
    _require_selection(selection)
    matches = _matches_before(doc, pattern, selection[0])
    if not matches:
        raise SelectionError(
            "no matches before selection", kind=SelectionError.NO_MATCH, count=0
        )
    return [ByteRange(matches[-1].start, selection[-1].end)]


_PATTERN_OPERATORS = {
    Select: select,
    SelectOne: select_one,
    Narrow: narrow,
    NarrowOne: narrow_one,
    SelectNext: select_next,
    SelectPrev: select_prev,
    ExtendForward: extend_forward,
    ExtendBack: extend_back,
}


def apply_selection(doc: Document, selection: list[ByteRange], command) -> list[ByteRange]:
    """Run one selection command and return the new selection."""
    try:
        if isinstance(command, PatternCommand):
            operator = _PATTERN_OPERATORS[type(command)]
            result = operator(doc, selection, command.pattern)
        elif isinstance(command, RetainFirst):
            result = retain_first(selection)
        elif isinstance(command, RetainLast):
            result = retain_last(selection)
        elif isinstance(command, RetainNth):
            result = retain_nth(selection, command.n)
        else:
            raise TypeError(f"Not a selection command: {command!r}")
    except SelectionError as exc:
        pattern = command.pattern.render() if isinstance(command, PatternCommand) else ""
        raise exc.with_command(command.keyword, pattern) from None

    result = normalize(result)
    logger.debug("[EDL] %s -> %d range(s)", command.render(), len(result))
    return result
