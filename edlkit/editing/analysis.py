"""
Static analysis of a script's file access, for permission prompts.
"""

from __future__ import annotations

from dataclasses import dataclass

from .parser import parse


@dataclass
class FileAccess:
    path: str
    read: bool = False
    write: bool = False


def analyze_file_access(script: str) -> list[FileAccess]:
    """Return the files *script* reads and writes, in first-use order.

    ``file`` reads a path; ``newfile`` or any mutation command writes it.
    Raises :class:`ParseError` for an invalid script.
    """
    access: dict[str, FileAccess] = {}
    for block in parse(script):
        entry = access.setdefault(block.path, FileAccess(block.path))
        if block.is_new:
            entry.write = True
        else:
            entry.read = True
        if block.mutation_count:
            entry.write = True
    return list(access.values())
