"""
Mutation engine — applies replace / insert / delete / cut to a selection.

All target offsets of one command are computed against the content as it
was before the command.  Edits are then spliced bottom-up (descending
offset) so no splice invalidates a pending one, and the new selection is
derived in a single ascending pass that accumulates the byte delta of
every earlier edit.  The result is the same as applying every edit
independently against the original offsets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .commands import (
    Cut, Delete, InlineText, InsertAfter, InsertBefore, Replace, TextCommand,
)
from .context import (
    CUT, DELETE, INSERT_AFTER, INSERT_BEFORE, REPLACE, FileContext,
    MutationEvent,
)
from .document import ByteRange, Document
from .errors import MutationError
from .registers import RegisterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edit:
    """Replace ``target`` (pre-command offsets) with ``text``."""
    target: ByteRange
    text: bytes
    order: int          # index of the selected range that produced it


def resolve_text(command: TextCommand, registers: RegisterStore) -> bytes:
    """Return the bytes a text command inserts.

    Raises :class:`MutationError` for a register that does not exist.
    """
    if isinstance(command.source, InlineText):
        return command.source.text
    text = registers.get(command.source.name)
    if text is None:
        raise MutationError(
            f"unknown register {command.source.name!r}",
            kind=MutationError.UNKNOWN_REGISTER,
        )
    return text


def splice_all(doc: Document, edits: list[Edit]) -> list[bytes]:
    """Apply *edits* bottom-up; return the removed bytes in edit order."""
    removed = [doc.text(e.target) for e in edits]
    for edit in sorted(
        edits, key=lambda e: (e.target.start, e.target.end, e.order), reverse=True
    ):
        doc.splice(edit.target, edit.text)
    return removed


def _shift_selection(
    selection: list[ByteRange],
    edits: list[Edit],
    kind: str,
) -> list[ByteRange]:
    """Map each selected range to its position after *edits*."""
    result: list[ByteRange] = []
    shift = 0
    for rng, edit in zip(selection, edits):
        delta = len(edit.text) - len(edit.target)
        start = rng.start + shift
        if kind == REPLACE:
            new = ByteRange(start, start + len(edit.text))
        elif kind == INSERT_BEFORE:
            new = ByteRange(start + len(edit.text), start + len(edit.text) + len(rng))
        elif kind == INSERT_AFTER:
            new = ByteRange(start, start + len(rng))
        else:
            new = ByteRange(start, start)
        result.append(new)
        shift += delta
    return sorted(set(result))


def _edits_for(kind: str, selection: list[ByteRange], text: bytes) -> list[Edit]:
    edits: list[Edit] = []
    for i, rng in enumerate(selection):
        if kind == INSERT_BEFORE:
            target = ByteRange(rng.start, rng.start)
        elif kind == INSERT_AFTER:
            target = ByteRange(rng.end, rng.end)
        else:
            target = rng
        edits.append(Edit(target=target, text=text, order=i))
    return edits


def _apply(ctx: FileContext, kind: str, text: bytes) -> list[MutationEvent]:
    selection = sorted(ctx.selection)
    edits = _edits_for(kind, selection, text)
    removed = splice_all(ctx.document, edits)
    ctx.selection = _shift_selection(selection, edits, kind)

    events = []
    for edit, old in zip(edits, removed):
        event = MutationEvent(kind=kind, range=edit.target, text_len=len(edit.text))
        ctx.mutation_log.append(event)
        ctx.summary.record(event, old, edit.text)
        events.append(event)
    return events


_TEXT_KINDS = {
    Replace: REPLACE,
    InsertBefore: INSERT_BEFORE,
    InsertAfter: INSERT_AFTER,
}


def apply_mutation(ctx: FileContext, command, registers: RegisterStore) -> list[MutationEvent]:
    """Apply one mutation command to *ctx* in place.

    Returns the mutation events it produced (also appended to
    ``ctx.mutation_log``).
    """
    try:
        if isinstance(command, Cut):
            if not ctx.selection:
                raise MutationError(
                    "no selection to cut",
                    kind=MutationError.EMPTY_SELECTION_FOR_CUT,
                )
            text = b"".join(ctx.document.text(r) for r in sorted(ctx.selection))
            registers.set(command.register, text)
            events = _apply(ctx, CUT, b"")
        elif isinstance(command, Delete):
            if not ctx.selection:
                raise MutationError("no selection", kind=MutationError.EMPTY_SELECTION)
            events = _apply(ctx, DELETE, b"")
        elif isinstance(command, TextCommand):
            text = resolve_text(command, registers)
            if not ctx.selection:
                raise MutationError("no selection", kind=MutationError.EMPTY_SELECTION)
            events = _apply(ctx, _TEXT_KINDS[type(command)], text)
        else:
            raise TypeError(f"Not a mutation command: {command!r}")
    except MutationError as exc:
        raise exc.with_command(command.render()) from None

    logger.debug(
        "[EDL] %s applied to %d range(s) in %s",
        command.render(), len(events), ctx.path,
    )
    return events
