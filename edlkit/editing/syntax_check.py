"""
Post-edit syntax validation using tree-sitter.

Only a handful of grammars are wired up; files with other extensions are
not checked.  A failed check never blocks a write, it only produces a
warning on the file's result.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import tree_sitter as ts
import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_typescript

logger = logging.getLogger(__name__)

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_LANGUAGE_FUNCS = {
    "python": tree_sitter_python.language,
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

# Cache parsers to avoid repeated construction
_PARSER_CACHE: dict[str, ts.Parser] = {}


def detect_language(file_path: str) -> Optional[str]:
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


def _get_parser(language: str) -> ts.Parser:
    if language not in _PARSER_CACHE:
        lang = ts.Language(_LANGUAGE_FUNCS[language]())
        _PARSER_CACHE[language] = ts.Parser(lang)
    return _PARSER_CACHE[language]


def _first_error(node) -> Optional[ts.Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def check_syntax(file_path: str, content: bytes) -> Optional[str]:
    """Return a warning if *content* does not parse, else None.

    Files whose extension has no grammar are reported as valid.
    """
    language = detect_language(file_path)
    if language is None:
        return None

    tree = _get_parser(language).parse(content)
    if not tree.root_node.has_error:
        return None

    node = _first_error(tree.root_node)
    row, col = node.start_point
    what = f"missing {node.type}" if node.is_missing else "syntax error"
    warning = f"{what} at {row + 1}:{col} ({language})"
    logger.warning("[EDL] Syntax check failed for %s: %s", file_path, warning)
    return warning
