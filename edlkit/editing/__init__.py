"""EDL interpreter — scripted, selection-based edits with per-file results."""

from .errors import EDLError, ParseError, EngineError, SelectionError, MutationError, SourceError
from .document import ByteRange, Document, Pos
from .patterns import Literal, Regex, LineStart, LineCol, Bof, Eof, Range, match
from .commands import FileBlock
from .parser import parse
from .registers import RegisterStore, SavedRegister
from .context import FileContext, MutationEvent, TraceEntry, MutationSummary
from .source import SourceProvider, FileSystemSource, MemorySource
from .results import FileResult, ScriptResult, RangeInfo
from .executor import Executor, run_script, salvage_registers
from .analysis import FileAccess, analyze_file_access
from .formatting import format_result, format_preview
from .metrics import log_run_metrics, read_edit_stats

__all__ = [
    "EDLError", "ParseError", "EngineError", "SelectionError", "MutationError", "SourceError",
    "ByteRange", "Document", "Pos",
    "Literal", "Regex", "LineStart", "LineCol", "Bof", "Eof", "Range", "match",
    "FileBlock", "parse",
    "RegisterStore", "SavedRegister",
    "FileContext", "MutationEvent", "TraceEntry", "MutationSummary",
    "SourceProvider", "FileSystemSource", "MemorySource",
    "FileResult", "ScriptResult", "RangeInfo",
    "Executor", "run_script", "salvage_registers",
    "FileAccess", "analyze_file_access",
    "format_result", "format_preview",
    "log_run_metrics", "read_edit_stats",
]
