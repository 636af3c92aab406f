"""Tests for ranges.py - pure translation of block ranges through edits."""

import pytest

from celltrack.ranges import (
    Edit,
    Position,
    TrackedBlock,
    apply_edits,
    line_offsets,
    offset_at,
    position_at,
    resolve_edit,
    revive,
    translate,
)

TEXT = "#%%\nfoo\n#%%\nbar\n#%%\nbaz"


def block_at(text, start_line, end_line, code=None, count=1):
    offsets = line_offsets(text)
    start = offsets[start_line]
    end = offsets[end_line] if end_line < len(offsets) else len(text)
    source = text[start:end]
    return TrackedBlock(
        file="test.py",
        code=code or source,
        source=source,
        start_line=start_line,
        end_line=end_line,
        start_offset=start,
        execution_count=count,
    )


def edit(sl, sc, el, ec, text):
    return Edit(Position(sl, sc), Position(el, ec), text)


class TestOffsets:
    def test_line_offsets(self):
        assert line_offsets("") == [0]
        assert line_offsets("a\nbc\n") == [0, 2, 5]
        assert line_offsets("a\r\nb") == [0, 3]

    def test_offset_at(self):
        assert offset_at(TEXT, (0, 0)) == 0
        assert offset_at(TEXT, (1, 2)) == 6
        assert offset_at(TEXT, Position(3, 0)) == 12

    def test_offset_past_line_end_runs_into_next_line(self):
        # Line 1 is "foo\n": character 4 lands on the start of line 2
        assert offset_at(TEXT, (1, 4)) == offset_at(TEXT, (2, 0))

    def test_offset_clamped_to_text(self):
        assert offset_at(TEXT, (5, 100)) == len(TEXT)
        assert offset_at(TEXT, (40, 0)) == len(TEXT)

    def test_position_at(self):
        assert position_at(TEXT, 0) == (0, 0)
        assert position_at(TEXT, 6) == (1, 2)
        assert position_at(TEXT, len(TEXT)) == (5, 3)
        assert position_at(TEXT, 1000) == (5, 3)


class TestResolveEdit:
    def test_deletion_of_whole_lines(self):
        resolved = resolve_edit(TEXT, edit(0, 0, 1, 4, ""))
        assert resolved.start_offset == 0
        assert resolved.end_offset == 8
        assert resolved.end == (2, 0)
        assert resolved.line_delta == -2
        assert resolved.offset_delta == -8

    def test_insertion(self):
        resolved = resolve_edit(TEXT, edit(2, 0, 2, 0, "x\ny\n"))
        assert resolved.start == resolved.end == (2, 0)
        assert resolved.line_delta == 2
        assert resolved.offset_delta == 4

    def test_reversed_range_is_empty(self):
        resolved = resolve_edit(TEXT, edit(2, 0, 1, 0, "x"))
        assert resolved.start_offset == resolved.end_offset

    def test_apply_edits_in_sequence(self):
        # The second edit is expressed against the text left by the first
        text, resolved = apply_edits("abc\n", [edit(0, 0, 0, 0, "x\n"), edit(1, 0, 1, 1, "A")])
        assert text == "x\nAbc\n"
        assert [r.line_delta for r in resolved] == [1, 0]


class TestTranslate:
    def test_edit_before_shifts(self):
        block = block_at(TEXT, 2, 4)
        result = translate([block], TEXT, [edit(0, 0, 0, 0, "a\nb\n")])

        moved = result.blocks[0]
        assert (moved.start_line, moved.end_line) == (4, 6)
        assert moved.start_offset == block.start_offset + 4
        assert not moved.deleted
        assert result.text == "a\nb\n" + TEXT

    def test_edit_after_leaves_block(self):
        block = block_at(TEXT, 2, 4)
        result = translate([block], TEXT, [edit(4, 0, 5, 3, "")])

        assert result.blocks[0] == block

    def test_edit_inside_deletes(self):
        block = block_at(TEXT, 2, 4)
        result = translate([block], TEXT, [edit(3, 1, 3, 2, "A")])

        hidden = result.blocks[0]
        assert hidden.deleted
        assert (hidden.start_line, hidden.end_line) == (2, 4)
        assert hidden.start_offset == block.start_offset

    def test_input_blocks_are_not_modified(self):
        block = block_at(TEXT, 2, 4)
        translate([block], TEXT, [edit(3, 0, 3, 1, "")])

        assert not block.deleted

    @pytest.mark.parametrize(
        "text, deleted",
        [
            ("", False),
            ("new\n", False),
            ("new", True),
            ("new\nline", True),
        ],
    )
    def test_insertion_at_block_start(self, text, deleted):
        """Inserted text that ends with a line break pushes the block down."""
        block = block_at(TEXT, 2, 4)
        result = translate([block], TEXT, [edit(2, 0, 2, 0, text)])

        assert result.blocks[0].deleted is deleted
        if not deleted:
            assert result.blocks[0].start_line == 2 + text.count("\n")

    def test_deletion_ending_at_block_start(self):
        block = block_at(TEXT, 2, 4)

        kept = translate([block], TEXT, [edit(1, 0, 2, 0, "")]).blocks[0]
        assert not kept.deleted
        assert (kept.start_line, kept.end_line) == (1, 3)

        # Removing only the line break joins the line above onto the block
        joined = translate([block], TEXT, [edit(1, 3, 2, 0, "")]).blocks[0]
        assert joined.deleted

    @pytest.mark.parametrize(
        "text, deleted",
        [("\n#%%\nmore", False), ("\r\nmore", False), ("more", True), ("", False)],
    )
    def test_insertion_after_last_line(self, text, deleted):
        """A block ending the document without a line break can be extended."""
        block = block_at(TEXT, 4, 6)
        result = translate([block], TEXT, [edit(5, 3, 5, 3, text)])

        assert result.blocks[0].deleted is deleted

    def test_insertion_after_line_break_is_after(self):
        block = block_at(TEXT, 2, 4)
        result = translate([block], TEXT, [edit(4, 0, 4, 0, "more")])

        assert result.blocks[0] == block

    def test_deleted_blocks_still_shift(self):
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [edit(3, 0, 3, 1, "")])
        moved = translate(hidden.blocks, hidden.text, [edit(0, 0, 1, 4, "")])

        assert moved.blocks[0].deleted
        assert (moved.blocks[0].start_line, moved.blocks[0].end_line) == (0, 2)

    def test_restore_points(self):
        """Edits deleting a block from at or above it remember where it was."""
        block = block_at(TEXT, 2, 4)

        above = translate([block], TEXT, [edit(1, 0, 3, 0, "")]).blocks[0]
        assert above.restore_points == ((4, 8),)

        inside = translate([block], TEXT, [edit(3, 1, 3, 2, "")]).blocks[0]
        assert inside.restore_points == ()

    def test_restore_points_follow_edits(self):
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [edit(1, 0, 3, 0, "")])

        shifted = translate(hidden.blocks, hidden.text, [edit(0, 0, 0, 0, "x\n")])
        assert shifted.blocks[0].restore_points == ((6, 10),)

        # Text inserted at the point may be the deleted text, so it stays
        kept = translate(hidden.blocks, hidden.text, [edit(1, 0, 1, 0, "y\n")])
        assert kept.blocks[0].restore_points == ((4, 8),)

        # An edit spanning the point removes it
        dropped = translate(hidden.blocks, hidden.text, [edit(0, 1, 1, 2, "")])
        assert dropped.blocks[0].restore_points == ()

    def test_batch_coordinates_follow_previous_edits(self):
        block = block_at(TEXT, 4, 6)
        result = translate(
            [block],
            TEXT,
            [edit(0, 0, 0, 0, "x\n"), edit(0, 0, 0, 0, "y\n"), edit(0, 0, 2, 0, "")],
        )
        assert (result.blocks[0].start_line, result.blocks[0].end_line) == (4, 6)
        assert result.text == TEXT
        assert len(result.edits) == 3


class TestRevive:
    def test_exact_reversal_revives(self):
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [edit(3, 0, 3, 1, "")])
        assert hidden.blocks[0].deleted

        restored = translate(hidden.blocks, hidden.text, [edit(3, 0, 3, 0, "b")])
        revived = revive(restored.blocks, restored.text)
        assert revived[0] == block

    def test_different_text_stays_deleted(self):
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [edit(3, 0, 3, 1, "B")])

        assert revive(hidden.blocks, hidden.text)[0].deleted

    def test_text_shifted_by_characters_stays_deleted(self):
        """The text has to be back at the block's offset, not just somewhere."""
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [edit(0, 0, 3, 3, "#%%\nfooo\n#%%\nbar")])

        assert revive(hidden.blocks, hidden.text)[0].deleted

    def test_reviving_recomputes_lines(self):
        block = block_at(TEXT, 2, 4)
        text = "extra\n" + TEXT
        hidden = TrackedBlock(**{**block.__dict__, "deleted": True})
        hidden.start_offset += len("extra\n")

        revived = revive([hidden], text)[0]
        assert not revived.deleted
        assert (revived.start_line, revived.end_line) == (3, 5)

    def test_no_revival_over_live_block(self):
        block = block_at(TEXT, 2, 4, count=1)
        other = block_at(TEXT, 2, 4, code="other", count=2)
        hidden = TrackedBlock(**{**block.__dict__, "deleted": True})

        result = revive([hidden, other], TEXT)
        assert result[0].deleted
        assert not result[1].deleted

    @pytest.mark.parametrize(
        "remove",
        [edit(2, 0, 4, 0, ""), edit(1, 0, 3, 0, ""), edit(0, 0, 3, 1, "#")],
    )
    def test_undo_from_above_revives(self, remove):
        block = block_at(TEXT, 2, 4)
        hidden = translate([block], TEXT, [remove])
        assert hidden.blocks[0].deleted

        resolved = hidden.edits[0]
        replaced = TEXT[resolved.start_offset : resolved.end_offset]
        undo = Edit(
            resolved.start,
            position_at(hidden.text, resolved.start_offset + len(remove.text)),
            replaced,
        )
        restored = translate(hidden.blocks, hidden.text, [undo])
        assert restored.text == TEXT

        assert revive(restored.blocks, restored.text)[0] == block

    def test_live_blocks_untouched(self):
        block = block_at(TEXT, 2, 4)
        assert revive([block], "something else")[0] is block
