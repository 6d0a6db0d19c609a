"""Content-Length framing for JSON-RPC messages over byte streams."""

from __future__ import annotations

import json
from typing import Any, BinaryIO, Iterator, Optional

HEADER_ENCODING = "ascii"
CONTENT_LENGTH = "content-length"
DEFAULT_MAX_CONTENT_LENGTH = 10 * 1024 * 1024


class FramingError(RuntimeError):
    """Raised when the byte stream does not contain a well-formed frame."""


def encode_message(payload: dict[str, Any]) -> bytes:
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )
    header = f"Content-Length: {len(body)}\r\n\r\n".encode(HEADER_ENCODING)
    return header + body


class MessageReader:
    """Reads framed message bodies from a blocking binary stream."""

    def __init__(
        self,
        stream: BinaryIO,
        *,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
    ) -> None:
        self._stream = stream
        self._max_content_length = max_content_length

    def __iter__(self) -> Iterator[bytes]:
        while True:
            payload = self.read_payload()
            if payload is None:
                return
            yield payload

    def read_payload(self) -> Optional[bytes]:
        """Return the next message body, or ``None`` at a clean end of stream."""

        headers = self._read_headers()
        if headers is None:
            return None

        raw_length = headers.get(CONTENT_LENGTH)
        if raw_length is None:
            raise FramingError("missing content length: header not found")
        try:
            length = int(raw_length)
        except ValueError as exc:
            raise FramingError(f"invalid content length {raw_length!r}") from exc
        if length < 0 or length > self._max_content_length:
            raise FramingError(f"content length {length} is out of bounds")

        body = self._stream.read(length)
        if len(body) < length:
            raise FramingError(
                f"stream ended after {len(body)} of {length} body bytes"
            )
        return body

    def _read_headers(self) -> Optional[dict[str, str]]:
        headers: dict[str, str] = {}
        while True:
            line = self._stream.readline()
            if not line:
                if headers:
                    raise FramingError("stream ended inside a message header")
                return None
            if line in (b"\r\n", b"\n"):
                if headers:
                    return headers
                continue
            name, sep, value = line.decode(HEADER_ENCODING, errors="replace").partition(
                ":"
            )
            if not sep:
                raise FramingError(f"malformed header line {line!r}")
            headers[name.strip().lower()] = value.strip()


def write_message(stream: BinaryIO, payload: dict[str, Any]) -> None:
    stream.write(encode_message(payload))
    stream.flush()


__all__ = [
    "FramingError",
    "MessageReader",
    "encode_message",
    "write_message",
]
