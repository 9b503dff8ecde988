"""
Error hierarchy for script parsing and execution.

Parse errors abort a whole script before any file is touched.  Engine
errors (selection, mutation, source) are scoped to the file block that
raised them and are converted into a per-file result by the executor.
"""

from __future__ import annotations


class EDLError(Exception):
    """Base class for all EDL errors."""


class ParseError(EDLError):
    """Raised when a script is structurally or syntactically invalid."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


class EngineError(EDLError):
    """An execution-time failure inside one file block.

    Carries the rendered command and pattern so the caller can see exactly
    which step failed and why.
    """

    def __init__(
        self,
        reason: str,
        kind: str = "",
        command: str = "",
        pattern: str = "",
    ) -> None:
        self.reason = reason
        self.kind = kind
        self.command = command
        self.pattern = pattern
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.command:
            return self.reason
        if self.pattern and self.pattern not in self.command:
            return f"{self.command} {self.pattern}: {self.reason}"
        return f"{self.command}: {self.reason}"

    def with_command(self, command: str, pattern: str = "") -> "EngineError":
        """Attach the rendered command (and pattern) if not already set."""
        if not self.command:
            self.command = command
        if pattern and not self.pattern:
            self.pattern = pattern
        self.args = (str(self),)
        return self


class SelectionError(EngineError):
    """A selection operator could not produce a valid selection."""

    NO_MATCH = "no_match"
    MULTIPLE_MATCHES = "multiple_matches"
    EMPTY_SELECTION = "empty_selection"
    OUT_OF_RANGE = "out_of_range"

    def __init__(
        self,
        reason: str,
        kind: str = NO_MATCH,
        command: str = "",
        pattern: str = "",
        count: int | None = None,
    ) -> None:
        self.count = count
        super().__init__(reason, kind=kind, command=command, pattern=pattern)


class MutationError(EngineError):
    """A mutation command could not be applied."""

    UNKNOWN_REGISTER = "unknown_register"
    EMPTY_SELECTION = "empty_selection"
    EMPTY_SELECTION_FOR_CUT = "empty_selection_for_cut"


class SourceError(EngineError):
    """The source provider could not read, create or write a file."""

    NOT_FOUND = "not_found"
    EXISTS = "exists"
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"
