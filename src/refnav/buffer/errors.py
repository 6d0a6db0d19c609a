"""Failures raised while translating between offsets and editor positions."""

from __future__ import annotations

from .positions import Position


class TextBufferError(RuntimeError):
    """Base class for buffer failures; carries the offending position or offset."""

    def __init__(
        self,
        message: str,
        *,
        position: Position | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.position = position
        self.offset = offset


class PositionOutOfRangeError(TextBufferError):
    """Raised when a line, character, or byte offset lies outside the buffer."""


class InvalidEncodingError(TextBufferError):
    """Raised when the bytes under a position are not valid UTF-8."""


class MisalignedSurrogateError(TextBufferError):
    """Raised when a character index splits a UTF-16 surrogate pair."""


__all__ = [
    "TextBufferError",
    "PositionOutOfRangeError",
    "InvalidEncodingError",
    "MisalignedSurrogateError",
]
