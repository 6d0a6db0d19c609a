"""Best-effort indentation parser for YAML-like API description files.

The parser never rejects input. Every physical line becomes a node so that
editor line numbers index directly into the result, and nesting is derived
purely from leading spaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from refnav.buffer.positions import Range
from refnav.runtime import telemetry

from .models import StructureDocument, StructureNode

_QUOTES = ("'", '"')


def _utf16_column(line: str, index: int) -> int:
    prefix = line[:index]
    if prefix.isascii():
        return index
    return len(prefix.encode("utf-16-le", "surrogatepass")) // 2


def split_lines(text: str) -> List[str]:
    """Split ``text`` into physical lines.

    A trailing newline does not open an extra line and a single ``\\r`` before
    each newline is dropped.
    """

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass(slots=True)
class _Frame:
    index: int
    indent: int


class StructureParser:
    """Turns buffer content into a :class:`StructureDocument` in one pass."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._logger_name = logger_name

    def parse(self, content: bytes | str) -> StructureDocument:
        text = (
            content.decode("utf-8", errors="surrogateescape")
            if isinstance(content, bytes)
            else content
        )
        with telemetry.span(
            "structure::parse",
            logger_name=self._logger_name,
            component="structure",
        ) as handle:
            document = StructureDocument()
            stack: List[_Frame] = []
            for line_number, line in enumerate(split_lines(text)):
                node = self.parse_line(line, line_number)
                document.nodes.append(node)
                if node.value:
                    document.value_index.setdefault(node.value, []).append(
                        node.index
                    )

                while stack and stack[-1].indent >= node.indent:
                    stack.pop()

                if stack:
                    parent = document.nodes[stack[-1].index]
                    node.parent = parent.index
                    parent.children[node.key] = node.index
                else:
                    document.roots[node.key] = node.index

                stack.append(_Frame(node.index, node.indent))

            handle.add_metadata("lines", len(document.nodes))
            handle.add_metadata("roots", len(document.roots))
        return document

    def parse_line(self, line: str, line_number: int) -> StructureNode:
        """Extract indent, key, and value from a single line."""

        stripped = line.lstrip(" ")
        indent = len(line) - len(stripped)
        column = _utf16_column(line, indent)
        empty = Range.on_line(line_number, column, column)
        node = StructureNode(
            index=line_number, indent=indent, key_range=empty, value_range=empty
        )

        key_end = line.find(":", indent)
        if key_end == -1:
            return node

        node.keyed = True
        node.key = line[indent:key_end]
        node.key_range = Range.on_line(
            line_number, column, _utf16_column(line, key_end)
        )

        value_start = key_end + 1
        while value_start < len(line) and line[value_start] == " ":
            value_start += 1
        if value_start >= len(line):
            return node

        quote = line[value_start]
        if quote in _QUOTES:
            value_end = line.rfind(quote)
            if value_end <= value_start:
                return node
            node.value = line[value_start + 1 : value_end]
            node.value_range = Range.on_line(
                line_number,
                _utf16_column(line, value_start + 1),
                _utf16_column(line, value_end),
            )
            return node

        node.value = line[value_start:]
        node.value_range = Range.on_line(
            line_number,
            _utf16_column(line, value_start),
            _utf16_column(line, len(line)),
        )
        return node


def parse_document(content: bytes | str) -> StructureDocument:
    return StructureParser().parse(content)


__all__ = ["StructureParser", "parse_document", "split_lines"]
