"""
Edit metrics — records script runs in a JSONL log file.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

from .results import ScriptResult

logger = logging.getLogger(__name__)

_METRICS_DIR = ".edlkit"
_METRICS_FILE = "edit_metrics.jsonl"


def _metrics_path(metrics_dir: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = metrics_dir or os.path.join(os.getcwd(), _METRICS_DIR)
    return os.path.join(base, _METRICS_FILE)


def log_run_metrics(result: ScriptResult, metrics_dir: str | None = None) -> None:
    """Append one metric entry per file block of *result*.

    Parameters
    ----------
    result:
        The finished script result.
    metrics_dir:
        Directory holding the metrics file. Defaults to ``./.edlkit``.
    """
    path = _metrics_path(metrics_dir)
    os.makedirs(os.path.dirname(path), exist_ok=True)

    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        with open(path, "a", encoding="utf-8") as f:
            for file_result in result.files:
                entry = {
                    "timestamp": timestamp,
                    "file": file_result.path,
                    "status": file_result.status,
                    "mutations": file_result.mutation_count,
                    "kinds": file_result.mutation_kinds,
                    "saved_registers": len(file_result.saved_registers),
                }
                f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[EDL] Failed to write metrics: %s", exc)


def read_edit_stats(last_n: int = 50, metrics_dir: str | None = None) -> dict:
    """Compute rolling statistics from the metrics log.

    Parameters
    ----------
    last_n:
        Number of most-recent entries to include.
    metrics_dir:
        Directory holding the metrics file.

    Returns
    -------
    dict
        ``total_files``, ``success_rate`` (percent), ``avg_mutations`` and
        ``salvaged_registers``.
    """
    path = _metrics_path(metrics_dir)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            entries.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue
        except OSError as exc:
            logger.warning("[EDL] Failed to read metrics: %s", exc)

    entries = entries[-last_n:]

    if not entries:
        return {
            "total_files": 0,
            "success_rate": 0.0,
            "avg_mutations": 0.0,
            "salvaged_registers": 0,
        }

    total = len(entries)
    successes = sum(1 for e in entries if e.get("status") == "ok")
    mutations = [e.get("mutations", 0) for e in entries]

    return {
        "total_files": total,
        "success_rate": successes / total * 100,
        "avg_mutations": sum(mutations) / total,
        "salvaged_registers": sum(e.get("saved_registers", 0) for e in entries),
    }
