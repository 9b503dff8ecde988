"""Tests for the mutation engine."""

import re

import pytest

from edlkit.editing.commands import (
    Cut, Delete, InlineText, InsertAfter, InsertBefore, RegisterRef, Replace,
)
from edlkit.editing.context import FileContext, MutationSummary, count_lines
from edlkit.editing.document import ByteRange
from edlkit.editing.errors import MutationError
from edlkit.editing.mutation import apply_mutation
from edlkit.editing.registers import RegisterStore


def _ctx(content: bytes, selection: list[ByteRange]) -> FileContext:
    ctx = FileContext.open("f.txt", content)
    ctx.selection = list(selection)
    return ctx


def _all(content: bytes, needle: bytes) -> list[ByteRange]:
    return [
        ByteRange(m.start(), m.end())
        for m in re.finditer(re.escape(needle), content)
    ]


class TestReplace:
    def test_single_range(self):
        ctx = _ctx(b"hello world\n", [ByteRange(0, 5)])
        events = apply_mutation(ctx, Replace(InlineText(b"goodbye")), RegisterStore())

        assert ctx.content == b"goodbye world\n"
        assert ctx.selection == [ByteRange(0, 7)]
        assert len(events) == 1
        assert events[0].range == ByteRange(0, 5)
        assert events[0].text_len == 7

    @pytest.mark.parametrize("content", [
        b"xxxxx",                                 # adjacent ranges
        b"x . x .. x ... x .... x",               # spread out
        b"x\nx\n\nx\n\n\nx\n\n\n\nx\n",          # one per line
    ])
    @pytest.mark.parametrize("replacement", [b"", b"y", b"longer text"])
    def test_multi_range_equals_independent_substitution(self, content, replacement):
        ranges = _all(content, b"x")
        assert len(ranges) == 5

        ctx = _ctx(content, ranges)
        apply_mutation(ctx, Replace(InlineText(replacement)), RegisterStore())

        assert ctx.content == content.replace(b"x", replacement)
        assert len(ctx.mutation_log) == 5
        # each new range covers exactly the inserted text
        for rng in ctx.selection:
            assert ctx.document.text(rng) == replacement

    def test_growing_replacement_shifts_later_ranges(self):
        ctx = _ctx(b"a-a-a", _all(b"a-a-a", b"a"))
        apply_mutation(ctx, Replace(InlineText(b"bbb")), RegisterStore())

        assert ctx.content == b"bbb-bbb-bbb"
        assert ctx.selection == [ByteRange(0, 3), ByteRange(4, 7), ByteRange(8, 11)]

    def test_from_register(self):
        registers = RegisterStore({"chunk": b"CHUNK"})
        ctx = _ctx(b"one two", [ByteRange(4, 7)])
        apply_mutation(ctx, Replace(RegisterRef("chunk")), registers)
        assert ctx.content == b"one CHUNK"

    def test_unknown_register(self):
        ctx = _ctx(b"one two", [ByteRange(4, 7)])
        with pytest.raises(MutationError) as exc_info:
            apply_mutation(ctx, Replace(RegisterRef("missing")), RegisterStore())

        err = exc_info.value
        assert err.kind == MutationError.UNKNOWN_REGISTER
        assert str(err) == "replace missing: unknown register 'missing'"
        assert ctx.content == b"one two"

    def test_empty_selection(self):
        ctx = _ctx(b"abc", [])
        with pytest.raises(MutationError) as exc_info:
            apply_mutation(ctx, Replace(InlineText(b"x")), RegisterStore())
        assert exc_info.value.kind == MutationError.EMPTY_SELECTION

    def test_zero_width_selection_inserts(self):
        ctx = _ctx(b"ab", [ByteRange(1, 1)])
        apply_mutation(ctx, Replace(InlineText(b"-")), RegisterStore())
        assert ctx.content == b"a-b"
        assert ctx.selection == [ByteRange(1, 2)]


class TestInsert:
    def test_insert_before_keeps_original_text_selected(self):
        content = b"fn a\nfn b\n"
        ctx = _ctx(content, _all(content, b"fn"))
        apply_mutation(ctx, InsertBefore(InlineText(b"pub ")), RegisterStore())

        assert ctx.content == b"pub fn a\npub fn b\n"
        assert [ctx.document.text(r) for r in ctx.selection] == [b"fn", b"fn"]

    def test_insert_after_keeps_original_text_selected(self):
        content = b"a;b;"
        ctx = _ctx(content, _all(content, b";"))
        apply_mutation(ctx, InsertAfter(InlineText(b"\n")), RegisterStore())

        assert ctx.content == b"a;\nb;\n"
        assert ctx.selection == [ByteRange(1, 2), ByteRange(4, 5)]

    def test_insert_on_adjacent_ranges(self):
        ctx = _ctx(b"aabb", [ByteRange(0, 2), ByteRange(2, 4)])
        apply_mutation(ctx, InsertBefore(InlineText(b"X")), RegisterStore())
        assert ctx.content == b"XaaXbb"
        assert ctx.selection == [ByteRange(1, 3), ByteRange(4, 6)]

        ctx = _ctx(b"aabb", [ByteRange(0, 2), ByteRange(2, 4)])
        apply_mutation(ctx, InsertAfter(InlineText(b"X")), RegisterStore())
        assert ctx.content == b"aaXbbX"
        assert ctx.selection == [ByteRange(0, 2), ByteRange(3, 5)]

    def test_event_targets_are_insertion_points(self):
        ctx = _ctx(b"abc", [ByteRange(1, 2)])
        events = apply_mutation(ctx, InsertAfter(InlineText(b"!")), RegisterStore())
        assert events[0].range == ByteRange(2, 2)


class TestDeleteAndCut:
    def test_delete_leaves_zero_width_ranges(self):
        content = b"keep DROP keep DROP"
        ctx = _ctx(content, _all(content, b"DROP"))
        apply_mutation(ctx, Delete(), RegisterStore())

        assert ctx.content == b"keep  keep "
        assert ctx.selection == [ByteRange(5, 5), ByteRange(11, 11)]

    def test_delete_then_insert_at_same_spot(self):
        ctx = _ctx(b"old value", [ByteRange(0, 3)])
        registers = RegisterStore()
        apply_mutation(ctx, Delete(), registers)
        apply_mutation(ctx, Replace(InlineText(b"new")), registers)
        assert ctx.content == b"new value"

    def test_delete_empty_selection(self):
        ctx = _ctx(b"abc", [])
        with pytest.raises(MutationError) as exc_info:
            apply_mutation(ctx, Delete(), RegisterStore())
        assert exc_info.value.kind == MutationError.EMPTY_SELECTION

    def test_cut_stores_text(self):
        registers = RegisterStore()
        ctx = _ctx(b"def f():\n    pass\n", [ByteRange(0, 18)])
        apply_mutation(ctx, Cut("func"), registers)

        assert registers.get("func") == b"def f():\n    pass\n"
        assert ctx.content == b""
        assert ctx.selection == [ByteRange(0, 0)]

    def test_cut_multiple_ranges_joins_in_order(self):
        registers = RegisterStore()
        ctx = _ctx(b"1a2b3", [ByteRange(1, 2), ByteRange(3, 4)])
        apply_mutation(ctx, Cut("letters"), registers)
        assert registers.get("letters") == b"ab"
        assert ctx.content == b"123"

    def test_cut_overwrites_register(self):
        registers = RegisterStore({"r": b"old"})
        ctx = _ctx(b"new", [ByteRange(0, 3)])
        apply_mutation(ctx, Cut("r"), registers)
        assert registers.get("r") == b"new"

    def test_cut_without_selection(self):
        registers = RegisterStore()
        ctx = _ctx(b"abc", [])
        with pytest.raises(MutationError) as exc_info:
            apply_mutation(ctx, Cut("r"), registers)
        assert exc_info.value.kind == MutationError.EMPTY_SELECTION_FOR_CUT
        assert "r" not in registers


class TestSummary:
    def test_counts_by_kind(self):
        registers = RegisterStore()
        ctx = _ctx(b"a\nb\nc\n", [ByteRange(0, 1), ByteRange(2, 3)])
        apply_mutation(ctx, Replace(InlineText(b"x\ny")), registers)
        apply_mutation(ctx, InsertAfter(InlineText(b"!")), registers)
        apply_mutation(ctx, Delete(), registers)

        summary = ctx.summary
        assert summary.replacements == 2
        assert summary.insertions == 2
        assert summary.deletions == 2
        assert summary.total == 6
        assert summary.lines_added == 2 * 2 + 2
        assert len(ctx.mutation_log) == 6

    def test_count_lines(self):
        assert count_lines(b"") == 0
        assert count_lines(b"x") == 1
        assert count_lines(b"x\ny") == 2

    def test_empty_summary(self):
        assert MutationSummary().total == 0
