"""End-to-end tests for script execution against an in-memory source."""

import pytest

from edlkit.editing.document import ByteRange, Pos
from edlkit.editing.errors import (
    MutationError, ParseError, SelectionError, SourceError,
)
from edlkit.editing.executor import Executor, run_script, salvage_registers
from edlkit.editing.parser import parse
from edlkit.editing.registers import RegisterStore
from edlkit.editing.source import MemorySource


class ReadOnlySource(MemorySource):
    def set_content(self, path, content):
        raise PermissionError(f"read-only: {path}")


def _run(script, files, registers=None, **options):
    options.setdefault("validate_syntax", False)
    source = MemorySource(files)
    result = run_script(script, source, registers, **options)
    return result, source


class TestSuccessfulRuns:
    def test_hello_world(self):
        script = "file a.txt\nselect_one /hello/\nreplace <<END\ngoodbye\nEND\n"
        result, source = _run(script, {"a.txt": b"hello world\n"})

        assert result.ok
        assert result.mutation_count == 1
        assert source.files["a.txt"] == b"goodbye world\n"
        assert source.writes == ["a.txt"]

        file_result = result.per_file["a.txt"]
        assert file_result.status == "ok"
        assert file_result.persisted
        assert file_result.commands_executed == file_result.total_commands == 2

    def test_trace_records_every_command(self):
        script = "file a.txt\nselect_one /hello/\nreplace <<END\ngoodbye\nEND\n"
        result, _ = _run(script, {"a.txt": b"hello world\n"})

        trace = result.files[0].trace
        assert [t.command for t in trace] == [
            "file a.txt", "select_one /hello/", "replace <<heredoc (7 bytes)",
        ]
        assert trace[0].snippet == "opened a.txt (2 lines)"
        assert trace[1].snippet == "hello"
        assert trace[1].ranges == (ByteRange(0, 5),)
        assert trace[2].snippet == "goodbye"
        assert trace[2].events[0].kind == "replace"

    def test_final_selection_positions(self):
        script = "file a.txt\nselect_one /world/\n"
        result, source = _run(script, {"a.txt": b"hello\nworld\n"})

        [info] = result.final_selection
        assert info.range == ByteRange(6, 11)
        assert info.start == Pos(2, 0)
        assert info.end == Pos(2, 5)
        assert info.content == "world"
        assert result.describe_final_selection() == "Final selection: 1 ranges"
        # selection-only blocks do not write
        assert source.writes == []

    def test_newfile(self):
        script = "newfile src/new.py\ninsert_after <<END\nx = 1\nEND\n"
        result, source = _run(script, {})

        assert result.ok
        assert result.files[0].is_new
        assert source.files["src/new.py"] == b"x = 1"
        assert result.files[0].trace[0].snippet == "created src/new.py"

    def test_empty_newfile_is_created(self):
        result, source = _run("newfile empty.txt\n", {})
        assert result.ok
        assert source.files["empty.txt"] == b""

    def test_narrow_to_line_start_and_replace(self):
        script = "file a.py\nselect 2\nnarrow /^def/\nreplace <<END\nasync def\nEND\n"
        result, source = _run(script, {"a.py": b"x = 1\ndef foo():\n    pass\n"})

        assert result.ok
        assert source.files["a.py"] == b"x = 1\nasync def foo():\n    pass\n"

    def test_non_ascii_regex_replaces_whole_character(self):
        script = "file a.txt\nselect /[\u00e9x]/\nreplace <<E\ne\nE\n"
        result, source = _run(script, {"a.txt": "caf\u00e9\n".encode("utf-8")})

        assert result.ok
        assert result.mutation_count == 1
        assert source.files["a.txt"] == b"cafe\n"

    def test_same_path_twice_sees_earlier_changes(self):
        script = """\
file a.txt
select_one /one/
replace <<END
two
END
file a.txt
select_one /two/
replace <<END
three
END
"""
        result, source = _run(script, {"a.txt": b"one"})
        assert result.ok
        assert len(result.files) == 2
        assert source.files["a.txt"] == b"three"

    def test_move_code_between_files_with_cut(self):
        script = """\
file a.py
select_one /def helper.*\\n/s
cut helper
file b.py
select eof
insert_after helper
"""
        files = {"a.py": b"x = 1\ndef helper():\n    pass\n", "b.py": b"y = 2\n"}
        result, source = _run(script, files)

        assert result.ok
        assert source.files["a.py"] == b"x = 1\n"
        assert source.files["b.py"] == b"y = 2\ndef helper():\n    pass\n"

    def test_register_survives_across_runs(self):
        registers = RegisterStore()
        source = MemorySource({"a.txt": b"[payload]", "b.txt": b"<>"})
        run_script("file a.txt\nselect_one /\\[.*\\]/\ncut r\n", source, registers,
                   validate_syntax=False)
        result = run_script("file b.txt\nselect_one 1:1\nreplace r\n", source, registers,
                            validate_syntax=False)

        assert result.ok
        assert source.files["b.txt"] == b"<[payload]>"


class TestFailures:
    def test_ambiguous_select_one(self):
        script = "file a.txt\nselect_one /dup/\ndelete\n"
        result, source = _run(script, {"a.txt": b"dup\ndup\n"})

        assert not result.ok
        file_result = result.files[0]
        assert isinstance(file_result.error, SelectionError)
        assert file_result.error.count == 2
        assert "2 matches found, expected exactly 1" in file_result.message
        assert file_result.message.startswith("select_one /dup/")
        assert source.writes == []

    def test_ambiguous_heredoc_literal(self):
        script = "file a.js\nselect_one <<END\nconst x = 1;\nEND\n"
        result, _ = _run(script, {"a.js": b"const x = 1;\nconst x = 1;\n"})
        assert "2 matches found, expected exactly 1" in result.files[0].message

    def test_missing_file(self):
        result, _ = _run("file nope.txt\nselect bof\n", {})
        err = result.files[0].error
        assert err.kind == SourceError.NOT_FOUND
        assert str(err) == "file nope.txt: file not found"

    def test_newfile_on_existing_path(self):
        script = "newfile a.txt\ninsert_after <<END\nnew\nEND\n"
        result, source = _run(script, {"a.txt": b"original"})

        err = result.files[0].error
        assert err.kind == SourceError.EXISTS
        assert source.files["a.txt"] == b"original"
        assert source.writes == []
        # the unexecuted insert is still salvaged
        assert [r.name for r in result.files[0].saved_registers] == ["_saved_1"]

    def test_salvage_after_partial_progress(self):
        script = """\
file a.txt
select_one /alpha/
replace <<END
A
END
select_one /missing/
replace <<END
B
END
select_one /gamma/
replace <<END
C
END
"""
        registers = RegisterStore()
        result, source = _run(script, {"a.txt": b"alpha\nbeta\ngamma\n"}, registers)

        file_result = result.files[0]
        assert not file_result.ok
        assert file_result.commands_executed == 2
        assert file_result.total_commands == 6
        assert file_result.mutation_count == 1
        assert file_result.persisted
        assert source.files["a.txt"] == b"A\nbeta\ngamma\n"

        assert [r.name for r in file_result.saved_registers] == ["_saved_1", "_saved_2"]
        assert registers.get("_saved_1") == b"B"
        assert registers.get("_saved_2") == b"C"

    def test_failing_text_command_is_salvaged_itself(self):
        script = "file a.txt\nselect_one /x/\nreplace missing\nreplace <<END\nkept\nEND\n"
        registers = RegisterStore()
        result, _ = _run(script, {"a.txt": b"x"}, registers)

        err = result.files[0].error
        assert isinstance(err, MutationError)
        assert err.kind == MutationError.UNKNOWN_REGISTER
        # the unresolvable reference has nothing to save
        assert [r.name for r in result.saved_registers] == ["_saved_1"]
        assert registers.get("_saved_1") == b"kept"

    def test_partial_persistence_can_be_disabled(self):
        script = "file a.txt\nselect_one /a/\ndelete\nselect_one /zzz/\n"
        result, source = _run(script, {"a.txt": b"abc"}, persist_partial=False)

        assert not result.ok
        assert not result.files[0].persisted
        assert source.writes == []
        assert source.files["a.txt"] == b"abc"

    def test_failure_is_isolated_to_its_file(self):
        script = """\
file a.txt
select_one /nothing/
replace <<END
lost
END
file b.txt
select_one /b/
replace <<END
B
END
"""
        registers = RegisterStore()
        result, source = _run(script, {"a.txt": b"a", "b.txt": b"b"}, registers)

        assert result.failed == 1
        assert result.succeeded == 1
        assert not result.per_file["a.txt"].ok
        assert result.per_file["b.txt"].ok
        assert source.files == {"a.txt": b"a", "b.txt": b"B"}
        assert [f.path for f in result.errors] == ["a.txt"]

    def test_saved_counter_spans_files_and_runs(self):
        registers = RegisterStore()
        failing = "file {0}\nselect_one /zzz/\nreplace <<END\n{0}\nEND\n"
        files = {"a": b"a", "b": b"b"}

        result, _ = _run(failing.format("a") + failing.format("b"), files, registers)
        assert [r.name for r in result.saved_registers] == ["_saved_1", "_saved_2"]

        result, _ = _run(failing.format("a"), files, registers)
        assert [r.name for r in result.saved_registers] == ["_saved_3"]
        assert registers.get("_saved_2") == b"b"

    def test_write_failure(self):
        source = ReadOnlySource({"a.txt": b"abc"})
        registers = RegisterStore()
        result = run_script("file a.txt\nselect_one /b/\ndelete\n", source, registers,
                            validate_syntax=False)

        file_result = result.files[0]
        assert not file_result.ok
        assert file_result.error.kind == SourceError.WRITE_FAILED
        assert "read-only" in file_result.message
        assert file_result.saved_registers == []
        assert len(registers) == 0

    def test_parse_error_touches_nothing(self):
        source = MemorySource({"a.txt": b"abc"})
        with pytest.raises(ParseError):
            run_script("file a.txt\nselect_one /a/\ndelete\nbogus\n", source)
        assert source.writes == []


class TestSyntaxValidation:
    def test_warning_does_not_block_write(self):
        script = "file m.py\nselect_one /pass/\nreplace <<END\n(\nEND\n"
        source = MemorySource({"m.py": b"def f():\n    pass\n"})
        result = run_script(script, source, validate_syntax=True)

        file_result = result.files[0]
        assert file_result.ok
        assert file_result.syntax_warning is not None
        assert "python" in file_result.syntax_warning
        assert source.files["m.py"] == b"def f():\n    (\n"

    def test_valid_python_has_no_warning(self):
        script = "file m.py\nselect_one /1/\nreplace <<END\n2\nEND\n"
        source = MemorySource({"m.py": b"x = 1\n"})
        result = run_script(script, source, validate_syntax=True)
        assert result.files[0].syntax_warning is None


class TestSalvageRegisters:
    def test_skips_non_text_commands(self):
        blocks = parse(
            "file a\nselect bof\ndelete\ncut r\nreplace <<E\nx\nE\ninsert_before r\n"
        )
        registers = RegisterStore({"r": b"from-register"})
        saved = salvage_registers(blocks[0].commands, registers)

        assert [str(s) for s in saved] == [
            "_saved_1 (1 bytes)", "_saved_2 (13 bytes)",
        ]

    def test_executor_default_registers(self):
        executor = Executor(MemorySource())
        assert len(executor.registers) == 0
