"""
Execution driver — runs parsed file blocks against a source provider.

Each block is processed to completion before the next one starts:

1. open a :class:`FileContext` (``file`` reads current content,
   ``newfile`` requires the path to be absent);
2. dispatch commands one by one to the selection or mutation engine;
3. on success, persist the new content and optionally syntax-check it;
4. on failure, salvage the text of unexecuted mutation commands into
   ``_saved_N`` registers and record the error for this file only.

Engine errors never escape :meth:`Executor.execute`; only a
:class:`ParseError` from :func:`run_script` aborts a whole script.
"""

from __future__ import annotations

import logging
from typing import Optional

from .commands import (
    MUTATION_COMMANDS, SELECTION_COMMANDS, Cut, Delete, FileBlock, InlineText,
    TextCommand,
)
from .context import FileContext, TraceEntry
from .errors import EngineError, SourceError
from .formatting import MAX_CONTENT_CHARS, MAX_SNIPPET_LENGTH, abridge_content, join_snippets
from .mutation import apply_mutation
from .parser import parse
from .registers import RegisterStore, SavedRegister
from .results import FileResult, RangeInfo, ScriptResult
from .selection import apply_selection
from .source import SourceProvider
from .syntax_check import check_syntax

logger = logging.getLogger(__name__)


def salvage_registers(commands, registers: RegisterStore) -> list[SavedRegister]:
    """Save the text of every text-mutation command in *commands*.

    Called once for a failing file with the commands that did not run
    (the failing command first).  Register references that no longer
    resolve have nothing to save and are skipped.
    """
    saved: list[SavedRegister] = []
    for command in commands:
        if not isinstance(command, TextCommand):
            continue
        if isinstance(command.source, InlineText):
            text = command.source.text
        else:
            text = registers.get(command.source.name)
            if text is None:
                continue
        saved.append(registers.save_auto(text))
    return saved


class Executor:
    """Runs file blocks sequentially, one :class:`FileResult` per block."""

    def __init__(
        self,
        source: SourceProvider,
        registers: Optional[RegisterStore] = None,
        persist_partial: bool = True,
        validate_syntax: bool = True,
        snippet_length: int = MAX_SNIPPET_LENGTH,
        max_content_chars: int = MAX_CONTENT_CHARS,
    ) -> None:
        self.source = source
        self.registers = registers if registers is not None else RegisterStore()
        self.persist_partial = persist_partial
        self.validate_syntax = validate_syntax
        self.snippet_length = snippet_length
        self.max_content_chars = max_content_chars

    def execute(self, blocks: list[FileBlock]) -> ScriptResult:
        result = ScriptResult()
        for block in blocks:
            result.files.append(self.run_block(block))
        logger.info(
            "[EDL] Script finished: %d mutations, %d file(s) ok, %d failed",
            result.mutation_count, result.succeeded, result.failed,
        )
        return result

    # ------------------------------------------------------------------
    # Per-file state machine
    # ------------------------------------------------------------------

    def run_block(self, block: FileBlock) -> FileResult:
        logger.debug("[EDL] %s (%d commands)", block.render(), len(block.commands))
        ctx: Optional[FileContext] = None
        position = 0
        try:
            ctx = self._open(block)
            for position, command in enumerate(block.commands):
                self._dispatch(ctx, command)
                ctx.commands_executed += 1
        except EngineError as exc:
            return self._fail(block, ctx, exc, block.commands[position:])

        if ctx.changed:
            try:
                self._persist(ctx)
            except SourceError as exc:
                return self._fail(block, ctx, exc, (), persist=False)

        result = self._file_result(block, ctx, ok=True)
        result.persisted = ctx.changed
        if self.validate_syntax and ctx.changed:
            result.syntax_warning = check_syntax(ctx.path, ctx.content)
        return result

    def _fail(
        self,
        block: FileBlock,
        ctx: Optional[FileContext],
        error: EngineError,
        unexecuted,
        persist: bool = True,
    ) -> FileResult:
        saved = salvage_registers(unexecuted, self.registers)
        logger.warning("[EDL] %s failed: %s", block.path, error)
        if saved:
            logger.warning(
                "[EDL] Saved unapplied text from %s to %s",
                block.path, ", ".join(str(r) for r in saved),
            )

        result = self._file_result(block, ctx, ok=False)
        result.error = error
        result.saved_registers = saved

        if persist and self.persist_partial and ctx is not None and ctx.mutation_log:
            try:
                self._persist(ctx)
                result.persisted = True
            except SourceError as exc:
                error.reason += f" (partial changes not saved: {exc.reason})"
                error.args = (str(error),)
        return result

    def _file_result(
        self,
        block: FileBlock,
        ctx: Optional[FileContext],
        ok: bool,
    ) -> FileResult:
        result = FileResult(
            path=block.path,
            ok=ok,
            is_new=block.is_new,
            total_commands=len(block.commands),
        )
        if ctx is None:
            return result
        result.trace = list(ctx.trace)
        result.summary = ctx.summary
        result.mutation_count = len(ctx.mutation_log)
        result.commands_executed = ctx.commands_executed
        result.content = ctx.content
        result.final_selection = self.describe_selection(ctx)
        return result

    # ------------------------------------------------------------------
    # Source provider boundary
    # ------------------------------------------------------------------

    def _open(self, block: FileBlock) -> FileContext:
        path = block.path
        if block.is_new:
            if self.source.exists(path):
                raise SourceError(
                    "file already exists", kind=SourceError.EXISTS,
                    command=block.render(),
                )
            ctx = FileContext.create(path)
            snippet = f"created {path}"
        else:
            if not self.source.exists(path):
                raise SourceError(
                    "file not found", kind=SourceError.NOT_FOUND,
                    command=block.render(),
                )
            try:
                content = self.source.get_content(path)
            except OSError as exc:
                raise SourceError(
                    f"failed to read file: {exc}", kind=SourceError.READ_FAILED,
                    command=block.render(),
                ) from exc
            ctx = FileContext.open(path, content)
            snippet = f"opened {path} ({ctx.document.line_count} lines)"
        ctx.trace.append(TraceEntry(block.render(), tuple(ctx.selection), snippet))
        return ctx

    def _persist(self, ctx: FileContext) -> None:
        try:
            self.source.set_content(ctx.path, ctx.content)
        except OSError as exc:
            logger.error("[EDL] Write failed for %s: %s", ctx.path, exc)
            raise SourceError(
                f"write failed: {exc}", kind=SourceError.WRITE_FAILED,
                command=f"write {ctx.path}",
            ) from exc

    # ------------------------------------------------------------------
    # Command dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, ctx: FileContext, command) -> None:
        doc = ctx.document
        if isinstance(command, SELECTION_COMMANDS):
            ctx.selection = apply_selection(doc, ctx.selection, command)
            snippet = self._snippet(ctx)
            events = ()
        elif isinstance(command, MUTATION_COMMANDS):
            if isinstance(command, (Delete, Cut)):
                removed = [doc.text(r) for r in ctx.selection]
                snippet = join_snippets(removed, self.snippet_length)
                events = tuple(apply_mutation(ctx, command, self.registers))
            else:
                events = tuple(apply_mutation(ctx, command, self.registers))
                snippet = self._snippet(ctx)
        else:
            raise TypeError(f"Unknown command type: {command!r}")
        ctx.trace.append(
            TraceEntry(command.render(), tuple(ctx.selection), snippet, events)
        )

    def _snippet(self, ctx: FileContext) -> str:
        return join_snippets(
            [ctx.document.text(r) for r in ctx.selection], self.snippet_length
        )

    def describe_selection(self, ctx: FileContext) -> list[RangeInfo]:
        doc = ctx.document
        return [
            RangeInfo(
                range=r,
                start=doc.offset_to_pos(r.start),
                end=doc.offset_to_pos(r.end),
                content=abridge_content(
                    doc.text(r).decode("utf-8", errors="replace"),
                    self.max_content_chars,
                ),
            )
            for r in ctx.selection
        ]


def run_script(
    script: str,
    source: SourceProvider,
    registers: Optional[RegisterStore] = None,
    **options,
) -> ScriptResult:
    """Parse and execute *script*.

    Raises :class:`ParseError` before touching any file if the script is
    invalid; every execution error is reported per file in the result.
    """
    blocks = parse(script)
    return Executor(source, registers, **options).execute(blocks)
