"""
Result types produced by the executor for callers and presentation.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from .context import MutationSummary, TraceEntry
from .document import ByteRange, Pos
from .errors import EngineError
from .registers import SavedRegister


@dataclass(frozen=True)
class RangeInfo:
    """A selected range with line:col positions and its (abridged) text."""
    range: ByteRange
    start: Pos
    end: Pos
    content: str


@dataclass
class FileResult:
    """Outcome of one ``file`` / ``newfile`` block."""
    path: str
    ok: bool
    trace: list[TraceEntry] = field(default_factory=list)
    summary: MutationSummary = field(default_factory=MutationSummary)
    mutation_count: int = 0
    commands_executed: int = 0
    total_commands: int = 0
    final_selection: list[RangeInfo] = field(default_factory=list)
    is_new: bool = False
    persisted: bool = False
    content: Optional[bytes] = None
    error: Optional[EngineError] = None
    saved_registers: list[SavedRegister] = field(default_factory=list)
    syntax_warning: Optional[str] = None

    @property
    def status(self) -> str:
        return "ok" if self.ok else "error"

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error)

    @property
    def mutation_kinds(self) -> dict[str, int]:
        return dict(Counter(e.kind for t in self.trace for e in t.events))


@dataclass
class ScriptResult:
    """Aggregate outcome of running one script."""
    files: list[FileResult] = field(default_factory=list)

    @property
    def per_file(self) -> dict[str, FileResult]:
        """Results keyed by path; a path used by several blocks maps to the last."""
        return {f.path: f for f in self.files}

    @property
    def mutation_count(self) -> int:
        return sum(f.mutation_count for f in self.files)

    @property
    def succeeded(self) -> int:
        return sum(1 for f in self.files if f.ok)

    @property
    def failed(self) -> int:
        return sum(1 for f in self.files if not f.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def errors(self) -> list[FileResult]:
        return [f for f in self.files if not f.ok]

    @property
    def saved_registers(self) -> list[SavedRegister]:
        return [r for f in self.files for r in f.saved_registers]

    @property
    def final_selection(self) -> list[RangeInfo]:
        if not self.files:
            return []
        return self.files[-1].final_selection

    def describe_final_selection(self) -> str:
        return f"Final selection: {len(self.final_selection)} ranges"
