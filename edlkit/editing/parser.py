"""
Script parser — turns EDL script text into ordered file blocks.

The lexer recognises four token kinds:

* words (commands, positions, register names, bare paths);
* ``/regex/flags`` literals;
* `` `backtick paths` ``;
* heredocs: ``<<DELIM`` or ``<<'DELIM'`` followed by body lines up to a
  line exactly equal to ``DELIM``.

``#`` starts a comment that runs to the end of the line.  Parsing is pure:
it never touches the filesystem and either returns every block or raises
a single :class:`ParseError`.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, Optional

from .commands import (
    Cut, Delete, ExtendBack, ExtendForward, FileBlock, InlineText,
    InsertAfter, InsertBefore, Narrow, NarrowOne, RegisterRef, Replace,
    RetainFirst, RetainLast, RetainNth, Select, SelectNext, SelectOne,
    SelectPrev,
)
from .errors import ParseError
from .patterns import (
    Bof, Eof, LineCol, LineStart, Literal, Pattern, Position, Range, Regex,
)

logger = logging.getLogger(__name__)

_DELIMITER = re.compile(r"\w+")
_LINE_COL = re.compile(r"^(\d+):(\d+)$")
_LINE = re.compile(r"^(\d+):?$")
_REGISTER_NAME = re.compile(r"^[A-Za-z_][\w.-]*$")
_HEREDOC_MARKER = re.compile(r"<<'?(\w+)'?")

_PATTERN_COMMANDS = {
    "select": Select,
    "select_one": SelectOne,
    "narrow": Narrow,
    "narrow_one": NarrowOne,
    "select_next": SelectNext,
    "select_prev": SelectPrev,
    "extend_forward": ExtendForward,
    "extend_back": ExtendBack,
}
_TEXT_COMMANDS = {
    "replace": Replace,
    "insert_before": InsertBefore,
    "insert_after": InsertAfter,
}
_BARE_COMMANDS = {
    "retain_first": RetainFirst,
    "retain_last": RetainLast,
    "delete": Delete,
}
_KNOWN_COMMANDS = (
    set(_PATTERN_COMMANDS) | set(_TEXT_COMMANDS) | set(_BARE_COMMANDS)
    | {"cut", "retain_nth"}
)


@dataclass
class Token:
    kind: str            # "word" | "regex" | "path" | "heredoc"
    value: str
    line: int
    flags: str = ""


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

class Lexer:
    """Single-pass tokenizer tracking 1-indexed line numbers."""

    def __init__(self, script: str) -> None:
        self._s = script
        self._pos = 0
        self._line = 1

    def tokens(self) -> Iterator[Token]:
        s = self._s
        while True:
            self._skip_whitespace()
            if self._pos >= len(s):
                return
            ch = s[self._pos]
            if ch == "#":
                while self._pos < len(s) and s[self._pos] != "\n":
                    self._pos += 1
            elif ch == "/":
                yield self._regex()
            elif ch == "`":
                yield self._path()
            elif s.startswith("<<", self._pos):
                yield self._heredoc()
            else:
                yield self._word()

    def _skip_whitespace(self) -> None:
        s = self._s
        while self._pos < len(s) and s[self._pos].isspace():
            if s[self._pos] == "\n":
                self._line += 1
            self._pos += 1

    def _regex(self) -> Token:
        s = self._s
        line = self._line
        self._pos += 1
        start = self._pos
        while self._pos < len(s):
            c = s[self._pos]
            if c == "\n":
                break
            if c == "\\" and self._pos + 1 < len(s) and s[self._pos + 1] != "\n":
                self._pos += 2
                continue
            if c == "/":
                break
            self._pos += 1
        if self._pos >= len(s) or s[self._pos] != "/":
            raise ParseError("Unterminated regex", line)
        source = s[start:self._pos]
        self._pos += 1
        flag_start = self._pos
        while self._pos < len(s) and s[self._pos].isalpha():
            self._pos += 1
        return Token("regex", source, line, flags=s[flag_start:self._pos])

    def _path(self) -> Token:
        s = self._s
        line = self._line
        self._pos += 1
        start = self._pos
        while self._pos < len(s) and s[self._pos] not in "`\n":
            self._pos += 1
        if self._pos >= len(s) or s[self._pos] != "`":
            raise ParseError("Unterminated path literal", line)
        value = s[start:self._pos]
        self._pos += 1
        return Token("path", value, line)

    def _heredoc(self) -> Token:
        s = self._s
        line = self._line
        self._pos += 2
        if self._pos < len(s) and s[self._pos] == "'":
            self._pos += 1
            start = self._pos
            while self._pos < len(s) and s[self._pos] not in "'\n":
                self._pos += 1
            if self._pos >= len(s) or s[self._pos] != "'":
                raise ParseError("Unterminated quoted heredoc marker", line)
            delimiter = s[start:self._pos]
            self._pos += 1
            if not delimiter:
                raise ParseError("Invalid heredoc marker", line)
        else:
            m = _DELIMITER.match(s, self._pos)
            if not m:
                raise ParseError("Invalid heredoc marker", line)
            delimiter = m.group(0)
            self._pos = m.end()

        while self._pos < len(s) and s[self._pos] != "\n":
            if not s[self._pos].isspace():
                raise ParseError("Unexpected content after heredoc marker", line)
            self._pos += 1
        if self._pos < len(s):
            self._pos += 1
            self._line += 1

        content_start = self._pos
        while self._pos < len(s):
            line_start = self._pos
            line_end = s.find("\n", line_start)
            if line_end == -1:
                line_end = len(s)
            if s[line_start:line_end] == delimiter:
                value_end = line_start - 1 if line_start > content_start else line_start
                self._pos = line_end
                return Token("heredoc", s[content_start:value_end], line)
            self._pos = line_end
            if self._pos < len(s):
                self._pos += 1
                self._line += 1
        raise ParseError(f"Unterminated heredoc, expected {delimiter}", line)

    def _word(self) -> Token:
        s = self._s
        start = self._pos
        while self._pos < len(s) and not s[self._pos].isspace():
            self._pos += 1
        return Token("word", s[start:self._pos], self._line)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

def parse_position(text: str, line: int | None = None) -> Optional[Position]:
    """Parse ``bof``, ``eof``, ``N``, ``N:`` or ``N:C``; None if not a position."""
    if text == "bof":
        return Bof()
    if text == "eof":
        return Eof()
    m = _LINE_COL.match(text)
    if m:
        line_no, col = int(m.group(1)), int(m.group(2))
        if line_no < 1:
            raise ParseError(f"Line numbers start at 1: {text}", line)
        return LineCol(line_no, col)
    m = _LINE.match(text)
    if m:
        line_no = int(m.group(1))
        if line_no < 1:
            raise ParseError(f"Line numbers start at 1: {text}", line)
        return LineStart(line_no)
    return None


def token_to_pattern(tok: Token) -> Pattern:
    if tok.kind == "regex":
        try:
            return Regex(tok.value, tok.flags)
        except (re.error, ValueError) as exc:
            raise ParseError(
                f"Invalid regex /{tok.value}/{tok.flags}: {exc}", tok.line
            ) from exc
    if tok.kind == "heredoc":
        if not tok.value:
            raise ParseError("Empty heredoc cannot be used as a pattern", tok.line)
        return Literal(tok.value.encode("utf-8"))
    if tok.kind == "path":
        raise ParseError("Unexpected path literal in pattern position", tok.line)

    value = tok.value
    dash = value.find("-")
    if 0 < dash < len(value) - 1:
        left = parse_position(value[:dash], tok.line)
        right = parse_position(value[dash + 1:], tok.line)
        if left is not None and right is not None:
            return Range(left, right)
        if left is not None or right is not None:
            raise ParseError(
                f"Invalid range {value!r}: both ends must be positions "
                "(line, line:col, bof or eof)",
                tok.line,
            )

    pos = parse_position(value, tok.line)
    if pos is not None:
        return pos
    if value[:1].isdigit():
        raise ParseError(f"Malformed position {value!r}", tok.line)
    raise ParseError(f"Invalid pattern: {value}", tok.line)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class ScriptParser:
    """Recursive-descent parser over the token stream."""

    def __init__(self, script: str) -> None:
        self._tokens = Lexer(script).tokens()
        self._last_line = 1

    def _next(self, expected: str | None = None) -> Optional[Token]:
        tok = next(self._tokens, None)
        if tok is None:
            if expected:
                raise ParseError(
                    f"Expected {expected}, got end of input", self._last_line
                )
            return None
        self._last_line = tok.line
        return tok

    def _expect_word(self, expected: str) -> Token:
        tok = self._next(expected)
        if tok.kind != "word":
            raise ParseError(f"Expected {expected}, got {tok.kind}", tok.line)
        return tok

    def _register_name(self, tok: Token) -> str:
        if not _REGISTER_NAME.match(tok.value):
            raise ParseError(f"Invalid register name: {tok.value}", tok.line)
        return tok.value

    def parse(self) -> list[FileBlock]:
        blocks: list[FileBlock] = []
        new_paths: set[str] = set()
        path: str | None = None
        is_new = False
        block_line = 0
        commands: list = []

        while True:
            tok = self._next()
            if tok is None:
                break
            if tok.kind != "word":
                raise ParseError(f"Expected command, got {tok.kind}", tok.line)
            keyword = tok.value

            if keyword in ("file", "newfile"):
                path_tok = self._next("file path")
                if path_tok.kind not in ("word", "path"):
                    raise ParseError(
                        f"Expected file path, got {path_tok.kind}", path_tok.line
                    )
                if path is not None:
                    blocks.append(FileBlock(path, is_new, tuple(commands), block_line))
                path, is_new, block_line, commands = (
                    path_tok.value, keyword == "newfile", tok.line, [],
                )
                if is_new:
                    if path in new_paths:
                        raise ParseError(
                            f"newfile {path} appears more than once", tok.line
                        )
                    new_paths.add(path)
                continue

            if path is None:
                if keyword in _KNOWN_COMMANDS:
                    raise ParseError(
                        f"{keyword} before any file or newfile command", tok.line
                    )
                raise ParseError(f"Unknown command: {keyword}", tok.line)

            commands.append(self._command(tok))

        if path is not None:
            blocks.append(FileBlock(path, is_new, tuple(commands), block_line))
        return blocks

    def _command(self, tok: Token):
        keyword = tok.value
        if keyword in _PATTERN_COMMANDS:
            pattern_tok = self._next("pattern")
            return _PATTERN_COMMANDS[keyword](token_to_pattern(pattern_tok), line=tok.line)

        if keyword in _BARE_COMMANDS:
            return _BARE_COMMANDS[keyword](line=tok.line)

        if keyword == "retain_nth":
            n_tok = self._expect_word("index")
            try:
                n = int(n_tok.value)
            except ValueError:
                raise ParseError(
                    f"Expected integer index after retain_nth, got {n_tok.value}",
                    n_tok.line,
                ) from None
            return RetainNth(n, line=tok.line)

        if keyword in _TEXT_COMMANDS:
            arg = self._next("heredoc or register name")
            if arg.kind == "heredoc":
                source = InlineText(arg.value.encode("utf-8"))
            elif arg.kind == "word":
                source = RegisterRef(self._register_name(arg))
            else:
                raise ParseError(
                    f"Expected heredoc or register name after {keyword}, "
                    f"got {arg.kind}",
                    arg.line,
                )
            return _TEXT_COMMANDS[keyword](source, line=tok.line)

        if keyword == "cut":
            reg_tok = self._expect_word("register name")
            return Cut(self._register_name(reg_tok), line=tok.line)

        raise ParseError(f"Unknown command: {keyword}", tok.line)


def find_conflicting_delimiters(script: str) -> list[str]:
    """Heredoc delimiters that occur as standalone lines more often than
    heredocs using them were opened."""
    openers = Counter(_HEREDOC_MARKER.findall(script))
    lines = script.split("\n")
    return [d for d, opened in openers.items() if lines.count(d) > opened]


def parse(script: str) -> list[FileBlock]:
    """Parse *script* into file blocks, or raise :class:`ParseError`."""
    try:
        blocks = ScriptParser(script).parse()
    except ParseError as exc:
        conflicts = find_conflicting_delimiters(script)
        if not conflicts:
            raise
        names = ", ".join(f'"{d}"' for d in conflicts)
        note = (
            f"\nNote: heredoc delimiter(s) {names} appeared multiple times as "
            "standalone lines in the script. The delimiter probably collides "
            "with the heredoc content; use a unique marker (e.g. "
            f"<<UNIQUE_MARKER instead of <<{conflicts[0]})."
        )
        raise ParseError(exc.message + note, exc.line) from None
    logger.debug(
        "[EDL] Parsed %d file block(s), %d command(s)",
        len(blocks), sum(len(b.commands) for b in blocks),
    )
    return blocks
