"""
Per-file execution state and trace records.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .document import ByteRange, Document

# Mutation event kinds
REPLACE = "replace"
INSERT_BEFORE = "insert_before"
INSERT_AFTER = "insert_after"
DELETE = "delete"
CUT = "cut"


@dataclass(frozen=True)
class MutationEvent:
    """One splice applied to a document.

    ``range`` is the target in the offsets of the content *before* the
    command ran; ``text_len`` is the number of bytes inserted.
    """
    kind: str
    range: ByteRange
    text_len: int


@dataclass(frozen=True)
class TraceEntry:
    """Selection state after one command, plus any mutations it made."""
    command: str
    ranges: tuple[ByteRange, ...]
    snippet: str
    events: tuple[MutationEvent, ...] = ()


@dataclass
class MutationSummary:
    replacements: int = 0
    insertions: int = 0
    deletions: int = 0
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def total(self) -> int:
        return self.replacements + self.insertions + self.deletions

    def record(self, event: MutationEvent, removed: bytes, inserted: bytes) -> None:
        if event.kind == REPLACE:
            self.replacements += 1
        elif event.kind in (INSERT_BEFORE, INSERT_AFTER):
            self.insertions += 1
        else:
            self.deletions += 1
        self.lines_removed += count_lines(removed)
        self.lines_added += count_lines(inserted)


def count_lines(text: bytes) -> int:
    if not text:
        return 0
    return text.count(b"\n") + 1


@dataclass
class FileContext:
    """Everything the engines need for one ``file`` / ``newfile`` block."""
    path: str
    document: Document
    selection: list[ByteRange] = field(default_factory=list)
    mutation_log: list[MutationEvent] = field(default_factory=list)
    trace: list[TraceEntry] = field(default_factory=list)
    summary: MutationSummary = field(default_factory=MutationSummary)
    is_new: bool = False
    commands_executed: int = 0

    @classmethod
    def open(cls, path: str, content: bytes) -> "FileContext":
        doc = Document(content)
        return cls(path=path, document=doc, selection=[doc.full_range()])

    @classmethod
    def create(cls, path: str) -> "FileContext":
        return cls(
            path=path,
            document=Document(b""),
            selection=[ByteRange(0, 0)],
            is_new=True,
        )

    @property
    def content(self) -> bytes:
        return self.document.content

    @property
    def changed(self) -> bool:
        return bool(self.mutation_log) or self.is_new
