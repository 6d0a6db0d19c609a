"""Editor-facing position, range, and edit value types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


def _expect_object(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{kind} must be an object, got {type(data).__name__}")
    return data


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """Zero-based line plus a character offset counted in UTF-16 code units."""

    line: int
    character: int

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Position":
        data = _expect_object(data, "position")
        return cls(line=int(data["line"]), character=int(data["character"]))

    def to_json(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    def __str__(self) -> str:
        return f"{self.line}:{self.character}"


@dataclass(frozen=True, slots=True)
class Range:
    """Half-open ``[start, end)`` span between two positions."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"range end {self.end} precedes start {self.start}")

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Range":
        data = _expect_object(data, "range")
        return cls(
            start=Position.from_json(data["start"]),
            end=Position.from_json(data["end"]),
        )

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Range":
        return cls(Position(line, start), Position(line, end))

    def to_json(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_json(), "end": self.end.to_json()}


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replacement text for ``range``; no range replaces the whole buffer."""

    text: str
    range: Optional[Range] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "TextEdit":
        data = _expect_object(data, "content change")
        raw_range = data.get("range")
        return cls(
            text=str(data.get("text", "")),
            range=Range.from_json(raw_range) if raw_range is not None else None,
        )


__all__ = ["Position", "Range", "TextEdit"]
