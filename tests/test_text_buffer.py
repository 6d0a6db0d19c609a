from __future__ import annotations

import pytest

from refnav.buffer import (
    InvalidEncodingError,
    MisalignedSurrogateError,
    Position,
    PositionOutOfRangeError,
    Range,
    TextBuffer,
    TextEdit,
    utf16_length,
)


def make_range(span: str) -> Range:
    start, end = span.split("-")
    start_line, start_char = (int(part) for part in start.split(":"))
    end_line, end_char = (int(part) for part in end.split(":"))
    return Range(Position(start_line, start_char), Position(end_line, end_char))


def make_edit(text: str, span: str | None = None) -> TextEdit:
    return TextEdit(text=text, range=make_range(span) if span else None)


EDIT_SCENARIOS = [
    (
        "type_from_empty",
        "\n",
        [
            ("a", "0:0-0:0", "a\n"),
            ("b", "0:1-0:1", "ab\n"),
            ("\n", "0:2-0:2", "ab\n\n"),
            ("c", "1:0-1:0", "ab\nc\n"),
            ("d", "1:1-1:1", "ab\ncd\n"),
        ],
    ),
    (
        "delete_from_end",
        "ab\ncd\n",
        [
            ("", "1:1-1:2", "ab\nc\n"),
            ("", "1:0-1:1", "ab\n\n"),
            ("", "0:2-0:2", "ab\n\n"),
            ("", "1:0-2:0", "ab\n"),
            ("", "0:1-0:2", "a\n"),
            ("", "0:0-0:1", "\n"),
        ],
    ),
    (
        "add_lines_then_update_each",
        "ab\ncd\n",
        [
            ("\n12\n34", "0:2-0:2", "ab\n12\n34\ncd\n"),
            ("x", "3:1-3:2", "ab\n12\n34\ncx\n"),
            ("y", "2:1-2:2", "ab\n12\n3y\ncx\n"),
            ("z", "1:1-1:2", "ab\n1z\n3y\ncx\n"),
        ],
    ),
    (
        "insert_at_beginning",
        "line1\nline2\nline3\n",
        [("start\n", "0:0-0:0", "start\nline1\nline2\nline3\n")],
    ),
    (
        "insert_at_end",
        "line1\nline2\nline3\n",
        [("end\n", "3:0-3:0", "line1\nline2\nline3\nend\n")],
    ),
    (
        "newline_at_both_ends",
        "line1\nline2\nline3\n",
        [
            ("\n", "0:0-0:0", "\nline1\nline2\nline3\n"),
            ("\n", "4:0-4:0", "\nline1\nline2\nline3\n\n"),
        ],
    ),
    (
        "delete_across_lines",
        "line1\nline2\nline3\nline4\n",
        [
            ("", "1:2-3:4", "line1\nli4\n"),
            ("x", "1:3-1:3", "line1\nli4x\n"),
        ],
    ),
    (
        "replace_across_lines_with_newlines",
        "line1\nline2\nline3\nline4\n",
        [
            ("new\ntext\n", "1:2-3:4", "line1\nlinew\ntext\n4\n"),
            ("x", "3:1-3:1", "line1\nlinew\ntext\n4x\n"),
        ],
    ),
    ("delete_final_line", "a\n", [("", "0:0-1:0", "")]),
    ("add_to_empty_without_newline", "", [("\n\n", "0:0-0:0", "\n\n")]),
    ("append_past_unterminated_last_line", "abc", [("\nd", "1:0-1:0", "abc\nd")]),
]


@pytest.mark.parametrize(
    "initial, steps",
    [(initial, steps) for _name, initial, steps in EDIT_SCENARIOS],
    ids=[name for name, _initial, _steps in EDIT_SCENARIOS],
)
def test_incremental_edit_steps(initial: str, steps: list[tuple[str, str, str]]) -> None:
    buffer = TextBuffer.from_text(initial)

    for index, (text, span, want) in enumerate(steps):
        buffer.apply_edit(make_edit(text, span))
        assert buffer.content == want.encode("utf-8"), f"step {index}"


def test_line_index_tracks_newlines() -> None:
    buffer = TextBuffer.from_text("ab\n\ncd")

    assert buffer.line_offsets == (0, 3, 4)
    assert buffer.line_count == 3

    buffer.reset("")
    assert buffer.line_offsets == (0,)


def test_full_replacement_edit() -> None:
    buffer = TextBuffer.from_text("old\ncontent\n")

    buffer.apply_edit(make_edit("new"))

    assert buffer.content == b"new"
    assert buffer.line_count == 1


def test_position_of_counts_utf16_units() -> None:
    buffer = TextBuffer.from_text("héllo\n\U0001f600x\n")

    assert buffer.position_of(0) == Position(0, 0)
    assert buffer.position_of(3) == Position(0, 2)  # after "h" + 2-byte "é"
    assert buffer.position_of(7) == Position(1, 0)
    assert buffer.position_of(11) == Position(1, 2)  # emoji is a surrogate pair
    assert buffer.position_of(12) == Position(1, 3)
    assert buffer.position_of(len(buffer)) == Position(2, 0)


def test_position_of_rejects_out_of_range_offsets() -> None:
    buffer = TextBuffer.from_text("abc")

    with pytest.raises(PositionOutOfRangeError):
        buffer.position_of(-1)
    with pytest.raises(PositionOutOfRangeError):
        buffer.position_of(4)


def test_offset_of_walks_multibyte_characters() -> None:
    buffer = TextBuffer.from_text("a\U0001f600b\n中文")

    assert buffer.offset_of(Position(0, 0)) == 0
    assert buffer.offset_of(Position(0, 1)) == 1
    assert buffer.offset_of(Position(0, 3)) == 5
    assert buffer.offset_of(Position(0, 4)) == 6
    assert buffer.offset_of(Position(1, 1)) == 10
    assert buffer.offset_of(Position(1, 2)) == 13


def test_offset_of_rejects_split_surrogate_pair() -> None:
    buffer = TextBuffer.from_text("a\U0001f600b")

    with pytest.raises(MisalignedSurrogateError):
        buffer.offset_of(Position(0, 2))


def test_offset_of_rejects_invalid_utf8() -> None:
    buffer = TextBuffer(b"a\xffb")

    assert buffer.offset_of(Position(0, 1)) == 1
    with pytest.raises(InvalidEncodingError):
        buffer.offset_of(Position(0, 2))


@pytest.mark.parametrize(
    "position",
    [
        Position(-1, 0),
        Position(0, -1),
        Position(0, 4),
        Position(0, 9),
        Position(3, 0),
        Position(2, 1),
    ],
)
def test_offset_of_rejects_out_of_range_positions(position: Position) -> None:
    buffer = TextBuffer.from_text("abc\nde")

    with pytest.raises(PositionOutOfRangeError):
        buffer.offset_of(position)


def test_end_of_buffer_sentinel() -> None:
    buffer = TextBuffer.from_text("abc")

    assert buffer.offset_of(Position(1, 0)) == 3
    with pytest.raises(PositionOutOfRangeError):
        buffer.offset_of(Position(1, 1))


def test_offset_position_round_trip() -> None:
    text = "kéy: '\U0001f600'\n  nested: 中\n\n"
    buffer = TextBuffer.from_text(text)
    boundaries = [0]
    for char in text:
        boundaries.append(boundaries[-1] + len(char.encode("utf-8")))

    for offset in boundaries:
        assert buffer.offset_of(buffer.position_of(offset)) == offset


def test_batch_applies_each_edit_against_previous_result() -> None:
    buffer = TextBuffer.from_text("ab")

    applied = buffer.apply_edits(
        [make_edit("x", "0:0-0:0"), make_edit("y", "0:3-0:3")]
    )

    assert applied == 2
    assert buffer.content == b"xaby"
    assert buffer.version == 1


def test_failed_batch_leaves_buffer_untouched() -> None:
    buffer = TextBuffer.from_text("abc\n")
    offsets = buffer.line_offsets

    with pytest.raises(PositionOutOfRangeError):
        buffer.apply_edits([make_edit("x", "0:0-0:0"), make_edit("y", "7:0-7:0")])

    assert buffer.content == b"abc\n"
    assert buffer.line_offsets == offsets
    assert buffer.version == 0


def test_noop_edit_keeps_bytes_identical() -> None:
    text = "foo:\n  bar: é\U0001f600\n"
    buffer = TextBuffer.from_text(text)

    buffer.apply_edit(make_edit(text, "0:0-2:0"))

    assert buffer.content == text.encode("utf-8")


def test_utf16_length_matches_python_encoder() -> None:
    for sample in ["", "ascii", "éè", "中文", "\U0001f600!", "a\U00010348b"]:
        expected = len(sample.encode("utf-16-le")) // 2
        assert utf16_length(sample.encode("utf-8")) == expected
