"""Tests for the edit metrics log."""

import json
import os

from edlkit.editing.executor import run_script
from edlkit.editing.metrics import log_run_metrics, read_edit_stats
from edlkit.editing.source import MemorySource


def _mixed_result():
    script = """\
file ok.txt
select /a/
replace <<END
b
END
file bad.txt
select_one /zzz/
insert_after <<END
saved
END
"""
    files = {"ok.txt": b"a a", "bad.txt": b"x"}
    return run_script(script, MemorySource(files), validate_syntax=False)


class TestLogRunMetrics:
    def test_one_entry_per_file(self, tmp_path):
        log_run_metrics(_mixed_result(), metrics_dir=str(tmp_path))

        path = os.path.join(str(tmp_path), "edit_metrics.jsonl")
        with open(path, encoding="utf-8") as f:
            entries = [json.loads(line) for line in f]

        assert [e["file"] for e in entries] == ["ok.txt", "bad.txt"]
        assert entries[0]["status"] == "ok"
        assert entries[0]["mutations"] == 2
        assert entries[0]["kinds"] == {"replace": 2}
        assert entries[1]["status"] == "error"
        assert entries[1]["saved_registers"] == 1
        assert "timestamp" in entries[0]


class TestReadEditStats:
    def test_no_log(self, tmp_path):
        stats = read_edit_stats(metrics_dir=str(tmp_path))
        assert stats["total_files"] == 0
        assert stats["success_rate"] == 0.0

    def test_aggregates(self, tmp_path):
        log_run_metrics(_mixed_result(), metrics_dir=str(tmp_path))
        stats = read_edit_stats(metrics_dir=str(tmp_path))

        assert stats["total_files"] == 2
        assert stats["success_rate"] == 50.0
        assert stats["avg_mutations"] == 1.0
        assert stats["salvaged_registers"] == 1

    def test_last_n_and_bad_lines(self, tmp_path):
        log_run_metrics(_mixed_result(), metrics_dir=str(tmp_path))
        with open(os.path.join(str(tmp_path), "edit_metrics.jsonl"), "a") as f:
            f.write("not json\n")

        stats = read_edit_stats(last_n=1, metrics_dir=str(tmp_path))
        assert stats["total_files"] == 1
        assert stats["success_rate"] == 0.0
