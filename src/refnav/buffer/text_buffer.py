"""Byte-backed document storage with UTF-16 position translation."""

from __future__ import annotations

from bisect import bisect_right
from contextlib import AbstractContextManager
from typing import ContextManager, Iterable, Optional

from refnav.runtime import telemetry

from .errors import (
    InvalidEncodingError,
    MisalignedSurrogateError,
    PositionOutOfRangeError,
)
from .positions import Position, TextEdit
from .utf16 import decode_scalar, utf16_length, utf16_units

_NEWLINE = 0x0A


def _line_starts(content: bytes) -> list[int]:
    offsets = [0]
    index = content.find(b"\n")
    while index != -1:
        offsets.append(index + 1)
        index = content.find(b"\n", index + 1)
    return offsets


def _encode(content: bytes | str) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


class TextBuffer:
    """Document content plus a line-start index rebuilt on every mutation.

    Offsets are byte offsets into the UTF-8 content. Positions follow the
    editor protocol: zero-based lines and characters counted in UTF-16 code
    units from the start of the line.
    """

    def __init__(self, content: bytes | str = b"", *, name: str = "document") -> None:
        self.name = name
        self.version = 0
        self._content = b""
        self._line_offsets: list[int] = [0]
        self._load(_encode(content))

    @classmethod
    def from_text(cls, text: str, *, name: str = "document") -> "TextBuffer":
        return cls(text, name=name)

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def line_count(self) -> int:
        """Number of newline-separated lines, i.e. newline count plus one."""

        return len(self._line_offsets)

    @property
    def line_offsets(self) -> tuple[int, ...]:
        return tuple(self._line_offsets)

    def __len__(self) -> int:
        return len(self._content)

    def reset(self, content: bytes | str) -> None:
        with telemetry.span(
            "buffer::reset", component="buffer", metadata={"buffer": self.name}
        ):
            self._load(_encode(content))
            self.version += 1

    def position_of(self, offset: int) -> Position:
        if offset < 0 or offset > len(self._content):
            raise PositionOutOfRangeError(
                f"offset {offset} is out of range [0, {len(self._content)}]",
                offset=offset,
            )
        line = bisect_right(self._line_offsets, offset) - 1
        line_start = self._line_offsets[line]
        view = memoryview(self._content)[line_start:offset]
        return Position(line=line, character=utf16_length(view))

    def offset_of(self, position: Position) -> int:
        line, character = position.line, position.character
        if line == len(self._line_offsets) and character == 0:
            return len(self._content)
        if line < 0 or line >= len(self._line_offsets) or character < 0:
            raise PositionOutOfRangeError(
                f"position {position} is out of range", position=position
            )

        cursor = self._line_offsets[line]
        remaining = character
        while remaining > 0:
            scalar, size = decode_scalar(self._content, cursor)
            if size == 0 or scalar == _NEWLINE:
                raise PositionOutOfRangeError(
                    f"position {position} is out of range", position=position
                )
            if scalar < 0:
                raise InvalidEncodingError(
                    f"invalid UTF-8 encoding at byte {cursor}",
                    position=position,
                    offset=cursor,
                )
            units = utf16_units(scalar)
            if units > remaining:
                raise MisalignedSurrogateError(
                    f"position {position} does not point to a valid UTF-16 code unit",
                    position=position,
                    offset=cursor,
                )
            remaining -= units
            cursor += size
        return cursor

    def apply_edit(self, edit: TextEdit) -> None:
        self.apply_edits((edit,))

    def apply_edits(self, edits: Iterable[TextEdit]) -> int:
        """Apply ``edits`` in order as one all-or-nothing batch.

        Each edit addresses the content left behind by the previous one. If any
        edit fails the buffer keeps its pre-batch content. Returns the number
        of edits applied.
        """

        with EditTransaction(self, "apply_edits") as tx:
            for edit in edits:
                tx.apply(edit)
            tx.commit()
        return tx.applied

    def _load(self, content: bytes) -> None:
        self._content = content
        self._line_offsets = _line_starts(content)

    def _splice(self, edit: TextEdit) -> None:
        if edit.range is None:
            self._load(_encode(edit.text))
            return
        start = self.offset_of(edit.range.start)
        end = self.offset_of(edit.range.end)
        content = self._content
        self._load(content[:start] + _encode(edit.text) + content[end:])


class EditTransaction(AbstractContextManager["EditTransaction"]):
    """Stages edits on a scratch copy and publishes them only on ``commit``."""

    def __init__(self, buffer: TextBuffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self.applied = 0
        self._scratch: Optional[TextBuffer] = None
        self._span_cm: Optional[ContextManager[telemetry.SpanHandle]] = None
        self._span: Optional[telemetry.SpanHandle] = None

    def __enter__(self) -> "EditTransaction":
        self._scratch = TextBuffer(self.buffer.content, name=self.buffer.name)
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name},
        )
        self._span = self._span_cm.__enter__()
        return self

    def apply(self, edit: TextEdit) -> None:
        if self._scratch is None:
            raise RuntimeError("transaction is not active")
        self._scratch._splice(edit)
        self.applied += 1

    def commit(self) -> None:
        if self._scratch is None:
            raise RuntimeError("transaction is not active")
        self.buffer._load(self._scratch.content)
        self.buffer.version += 1
        if self._span is not None:
            self._span.add_metadata("edits", self.applied)
            self._span.add_metadata("version", self.buffer.version)
        self._scratch = None

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._scratch = None
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["TextBuffer", "EditTransaction"]
