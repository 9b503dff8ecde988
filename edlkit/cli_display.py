"""
Terminal output and logging setup for the command line.
"""

import logging
import os
import sys
from datetime import datetime

from .editing.formatting import format_result
from .editing.results import ScriptResult


def setup_logger(log_dir: str = ".edlkit/logs", verbose: bool = False) -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"edlkit_{timestamp}.log")

    logger = logging.getLogger("edlkit")
    logger.setLevel(logging.DEBUG)

    # File handler captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    if verbose:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.DEBUG)
        sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(sh)

    return logger


class ResultDisplay:
    """Prints script results with optional ANSI colours."""

    C_GREEN  = "\033[38;5;114m"
    C_RED    = "\033[38;5;203m"
    C_YELLOW = "\033[38;5;221m"
    C_DIM    = "\033[38;5;243m"
    C_BOLD   = "\033[1m"
    C_RESET  = "\033[0m"

    ICONS = {
        "ok":     "✔",
        "error":  "✘",
    }

    def __init__(self, stream=None, color: bool | None = None):
        self.stream = stream or sys.stdout
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.color = color

    def _c(self, code: str, text: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{self.C_RESET}"

    def write(self, text: str = "") -> None:
        self.stream.write(text + "\n")

    def show_result(self, result: ScriptResult, detail: bool = False,
                    max_content_chars: int = 800) -> None:
        for f in result.files:
            icon = self.ICONS[f.status]
            code = self.C_GREEN if f.ok else self.C_RED
            line = f"{icon} {f.path}: {f.mutation_count} mutations"
            if not f.ok:
                line += f": {f.message}"
            self.write(self._c(code, line))
        self.write(self._c(
            self.C_BOLD,
            f"{result.mutation_count} mutations in "
            f"{sum(1 for f in result.files if f.mutation_count)} files"
            f" ({result.failed} failed)",
        ))
        self.write()
        self.write(format_result(result, detail=detail,
                                 max_content_chars=max_content_chars))

    def show_error(self, message: str) -> None:
        self.write(self._c(self.C_RED, f"[ERROR] {message}"))

    def show_dim(self, message: str) -> None:
        self.write(self._c(self.C_DIM, message))
