"""Tests for source providers."""

import os

import pytest

from edlkit.editing.executor import run_script
from edlkit.editing.source import FileSystemSource, MemorySource, safe_write


class TestFileSystemSource:
    def test_read_write(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"old")
        source = FileSystemSource(root=str(tmp_path))

        assert source.exists("a.txt")
        assert source.get_content("a.txt") == b"old"
        source.set_content("a.txt", b"new")
        assert (tmp_path / "a.txt").read_bytes() == b"new"

    def test_write_creates_parent_dirs(self, tmp_path):
        source = FileSystemSource(root=str(tmp_path))
        source.set_content("deep/er/file.txt", b"x")
        assert (tmp_path / "deep" / "er" / "file.txt").read_bytes() == b"x"

    def test_missing_file(self, tmp_path):
        source = FileSystemSource(root=str(tmp_path))
        assert not source.exists("nope.txt")
        with pytest.raises(FileNotFoundError):
            source.get_content("nope.txt")

    def test_buffer_preferred_over_disk(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"on disk")
        source = FileSystemSource(root=str(tmp_path), buffers={"a.txt": b"unsaved"})

        assert source.get_content("a.txt") == b"unsaved"
        source.set_content("a.txt", b"edited")
        assert source.buffer("a.txt") == b"edited"
        assert (tmp_path / "a.txt").read_bytes() == b"edited"

    def test_buffer_only_path_exists(self, tmp_path):
        source = FileSystemSource(root=str(tmp_path), buffers={"new.txt": b""})
        assert source.exists("new.txt")

    def test_dry_run_leaves_disk_untouched(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"hello")
        source = FileSystemSource(root=str(tmp_path), write_through=False)

        result = run_script(
            "file a.txt\nselect_one /hello/\nreplace <<END\nbye\nEND\n",
            source, validate_syntax=False,
        )

        assert result.ok
        assert (tmp_path / "a.txt").read_bytes() == b"hello"
        assert source.buffer("a.txt") == b"bye"

    def test_absolute_paths_ignore_root(self, tmp_path):
        target = tmp_path / "abs.txt"
        target.write_bytes(b"abs")
        source = FileSystemSource(root="/somewhere/else")
        assert source.get_content(str(target)) == b"abs"


class TestSafeWrite:
    def test_no_temp_file_left(self, tmp_path):
        path = tmp_path / "out.txt"
        safe_write(str(path), b"data")
        safe_write(str(path), b"again")

        assert path.read_bytes() == b"again"
        assert os.listdir(tmp_path) == ["out.txt"]


class TestMemorySource:
    def test_records_writes(self):
        source = MemorySource({"a": b"1"})
        source.set_content("b", b"2")
        assert source.exists("b")
        assert source.writes == ["b"]

    def test_missing(self):
        with pytest.raises(FileNotFoundError):
            MemorySource().get_content("x")
