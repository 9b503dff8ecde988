"""
Text rendering for traces and results.

The executor uses :func:`format_snippet` while recording the trace; the
rest renders a finished :class:`ScriptResult` either as a summary (the
default) or with full range contents (``detail=True``).
"""

from __future__ import annotations

from .context import MutationSummary, TraceEntry
from .results import FileResult, RangeInfo, ScriptResult

MAX_SNIPPET_LENGTH = 120
MAX_CONTENT_CHARS = 800
PREVIEW_LINES = 20


def format_snippet(text: bytes, max_length: int = MAX_SNIPPET_LENGTH) -> str:
    """Shorten selected text for a trace line.

    A single long line keeps its head and tail around ``...``; multi-line
    text is shown as first line, ``...``, last line.
    """
    decoded = text.decode("utf-8", errors="replace")
    lines = decoded.split("\n")
    if len(lines) == 1:
        line = lines[0]
        if len(line) > max_length:
            half = (max_length - 3) // 2
            return line[:half] + "..." + line[len(line) - half:]
        return line
    return f"{lines[0]}\n...\n{lines[-1]}"


def join_snippets(texts: list[bytes], max_length: int = MAX_SNIPPET_LENGTH) -> str:
    return " | ".join(format_snippet(t, max_length) for t in texts)


def abridge_content(content: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    if len(content) <= max_chars:
        return content
    half = (max_chars - 5) // 2
    return content[:half] + "\n...\n" + content[-half:]


def format_trace(trace: list[TraceEntry], indent: str = "  ") -> str:
    return "\n".join(f"{indent}{t.command} → {t.snippet}" for t in trace)


def format_summary(summary: MutationSummary) -> str:
    parts = []
    if summary.replacements:
        parts.append(f"{summary.replacements} replacements")
    if summary.insertions:
        parts.append(f"{summary.insertions} insertions")
    if summary.deletions:
        parts.append(f"{summary.deletions} deletions")
    parts.append(f"+{summary.lines_added}/-{summary.lines_removed} lines")
    return ", ".join(parts)


def format_range_info(info: RangeInfo, max_chars: int = MAX_CONTENT_CHARS) -> str:
    return f"[{info.start} - {info.end}]\n{abridge_content(info.content, max_chars)}"


def format_file_error(result: FileResult) -> str:
    lines = [f"  {result.path}: {result.message}"]
    lines.append(
        f"    Completed {result.commands_executed} of {result.total_commands} commands"
    )
    if result.trace:
        lines.append("    Trace:")
        lines.append(format_trace(result.trace, indent="      "))
    if result.saved_registers:
        saved = ", ".join(str(r) for r in result.saved_registers)
        lines.append(f"    Unapplied text saved to registers: {saved}")
    return "\n".join(lines)


def format_result(
    result: ScriptResult,
    detail: bool = False,
    max_content_chars: int = MAX_CONTENT_CHARS,
) -> str:
    """Render *result* as a multi-section text report."""
    sections: list[str] = []

    trace_lines = []
    for f in result.files:
        if f.trace:
            trace_lines.append(format_trace(f.trace))
    sections.append("Trace:\n" + "\n".join(trace_lines))

    mutated = [f for f in result.files if f.mutation_count]
    if mutated:
        body = "\n".join(f"  {f.path}: {format_summary(f.summary)}" for f in mutated)
    else:
        body = "No files modified."
    sections.append(
        f"Mutations ({result.mutation_count} in {len(mutated)} files):\n{body}"
    )

    selection = result.final_selection
    if selection:
        if detail:
            ranges = "\n\n".join(
                f"  Range {i}: {format_range_info(r, max_content_chars)}"
                for i, r in enumerate(selection, 1)
            )
        else:
            ranges = "\n".join(
                f"  Range {i}: [{r.start} - {r.end}]"
                for i, r in enumerate(selection, 1)
            )
        sections.append(f"{result.describe_final_selection()}:\n{ranges}")

    warnings = [f for f in result.files if f.syntax_warning]
    if warnings:
        sections.append(
            "Syntax warnings:\n"
            + "\n".join(f"  {f.path}: {f.syntax_warning}" for f in warnings)
        )

    if result.errors:
        sections.append(
            "File errors:\n" + "\n".join(format_file_error(f) for f in result.errors)
        )

    return "\n\n".join(sections)


def format_preview(script: str, max_lines: int = PREVIEW_LINES) -> str:
    """Abridge a script for display, keeping its head and tail."""
    lines = script.splitlines()
    if len(lines) <= max_lines:
        return script
    head = max_lines // 2
    tail = max_lines - head
    omitted = len(lines) - max_lines
    return "\n".join(
        lines[:head] + [f"... ({omitted} more lines) ..."] + lines[-tail:]
    )
