"""
Parsed command types.

Every command is a frozen dataclass; the executor dispatches on the
concrete type.  ``line`` is the script line the command started on and is
excluded from equality so parsed commands compare by meaning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

from .patterns import Pattern


@dataclass(frozen=True)
class InlineText:
    """Mutation text given directly as a heredoc."""
    text: bytes


@dataclass(frozen=True)
class RegisterRef:
    """Mutation text read from a named register at execution time."""
    name: str


MutationText = Union[InlineText, RegisterRef]


# ---------------------------------------------------------------------------
# Selection commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PatternCommand:
    pattern: Pattern
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = ""

    def render(self) -> str:
        return f"{self.keyword} {self.pattern.render()}"


class Select(PatternCommand):
    keyword = "select"


class SelectOne(PatternCommand):
    keyword = "select_one"


class Narrow(PatternCommand):
    keyword = "narrow"


class NarrowOne(PatternCommand):
    keyword = "narrow_one"


class SelectNext(PatternCommand):
    keyword = "select_next"


class SelectPrev(PatternCommand):
    keyword = "select_prev"


class ExtendForward(PatternCommand):
    keyword = "extend_forward"


class ExtendBack(PatternCommand):
    keyword = "extend_back"


@dataclass(frozen=True)
class RetainFirst:
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = "retain_first"

    def render(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class RetainLast:
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = "retain_last"

    def render(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class RetainNth:
    n: int
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = "retain_nth"

    def render(self) -> str:
        return f"{self.keyword} {self.n}"


# ---------------------------------------------------------------------------
# Mutation commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextCommand:
    source: MutationText
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = ""

    def render(self) -> str:
        if isinstance(self.source, RegisterRef):
            return f"{self.keyword} {self.source.name}"
        return f"{self.keyword} <<heredoc ({len(self.source.text)} bytes)"


class Replace(TextCommand):
    keyword = "replace"


class InsertBefore(TextCommand):
    keyword = "insert_before"


class InsertAfter(TextCommand):
    keyword = "insert_after"


@dataclass(frozen=True)
class Delete:
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = "delete"

    def render(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class Cut:
    register: str
    line: int = field(default=0, compare=False)

    keyword: ClassVar[str] = "cut"

    def render(self) -> str:
        return f"{self.keyword} {self.register}"


SelectionCommand = Union[
    Select, SelectOne, Narrow, NarrowOne, SelectNext, SelectPrev,
    ExtendForward, ExtendBack, RetainFirst, RetainLast, RetainNth,
]
MutationCommand = Union[Replace, InsertBefore, InsertAfter, Delete, Cut]
Command = Union[SelectionCommand, MutationCommand]

SELECTION_COMMANDS = (PatternCommand, RetainFirst, RetainLast, RetainNth)
MUTATION_COMMANDS = (TextCommand, Delete, Cut)


@dataclass(frozen=True)
class FileBlock:
    """A ``file`` / ``newfile`` target and the commands that follow it."""
    path: str
    is_new: bool = False
    commands: tuple = ()
    line: int = field(default=0, compare=False)

    def render(self) -> str:
        return f"{'newfile' if self.is_new else 'file'} {self.path}"

    @property
    def mutation_count(self) -> int:
        return sum(1 for c in self.commands if isinstance(c, MUTATION_COMMANDS))
