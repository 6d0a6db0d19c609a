"""Text storage and editor position translation."""

from .errors import (
    InvalidEncodingError,
    MisalignedSurrogateError,
    PositionOutOfRangeError,
    TextBufferError,
)
from .positions import Position, Range, TextEdit
from .text_buffer import EditTransaction, TextBuffer
from .utf16 import utf16_length

__all__ = [
    "TextBuffer",
    "EditTransaction",
    "Position",
    "Range",
    "TextEdit",
    "TextBufferError",
    "PositionOutOfRangeError",
    "InvalidEncodingError",
    "MisalignedSurrogateError",
    "utf16_length",
]
