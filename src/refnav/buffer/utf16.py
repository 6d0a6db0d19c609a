"""UTF-16 code unit accounting over UTF-8 encoded bytes."""

from __future__ import annotations

_ASCII_LIMIT = 0x80
_BMP_LIMIT = 0x10000


def utf8_sequence_length(lead: int) -> int:
    """Return the byte length announced by a UTF-8 lead byte, or 0 if invalid."""

    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def decode_scalar(data: bytes | memoryview, start: int) -> tuple[int, int]:
    """Decode the code point at ``start``.

    Returns ``(scalar, size)``. ``size`` is 0 at end of input and ``scalar`` is
    -1 when the bytes at ``start`` are not a well-formed UTF-8 sequence.
    """

    if start >= len(data):
        return -1, 0
    lead = data[start]
    size = utf8_sequence_length(lead)
    if size == 1:
        return lead, 1
    if size == 0 or start + size > len(data):
        return -1, 1
    try:
        decoded = bytes(data[start : start + size]).decode("utf-8")
    except UnicodeDecodeError:
        return -1, 1
    return ord(decoded), size


def utf16_length(data: bytes | memoryview) -> int:
    """Count the UTF-16 code units needed to encode ``data``.

    Malformed sequences count one unit per offending byte, matching how a
    lenient decoder substitutes a replacement character.
    """

    units = 0
    index = 0
    end = len(data)
    while index < end:
        if data[index] < _ASCII_LIMIT:
            units += 1
            index += 1
            continue
        scalar, size = decode_scalar(data, index)
        units += 2 if scalar >= _BMP_LIMIT else 1
        index += size
    return units


def utf16_units(scalar: int) -> int:
    return 2 if scalar >= _BMP_LIMIT else 1


__all__ = ["decode_scalar", "utf16_length", "utf16_units", "utf8_sequence_length"]
