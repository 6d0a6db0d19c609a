"""Per-document state and the definition/reference query logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from refnav.buffer import Position, Range, TextBuffer, TextEdit
from refnav.runtime import telemetry
from refnav.structure import StructureDocument, StructureParser, pointer_of, resolve

SYNC_INCREMENTAL = 2


class UnknownDocumentError(RuntimeError):
    """Raised when a change or query names a document that is not open."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"unknown document: {uri}")
        self.uri = uri


class DocumentState(str, Enum):
    """Whether the cached structure reflects the current buffer."""

    NOT_PARSED = "not_parsed"
    PARSED = "parsed"


@dataclass(frozen=True, slots=True)
class Location:
    uri: str
    range: Range

    def to_json(self) -> dict[str, Any]:
        return {"uri": self.uri, "range": self.range.to_json()}


@dataclass(slots=True)
class OpenDocument:
    """A text buffer together with its lazily parsed structure."""

    uri: str
    buffer: TextBuffer
    state: DocumentState = DocumentState.NOT_PARSED
    structure: Optional[StructureDocument] = field(default=None, repr=False)

    def invalidate(self) -> None:
        self.state = DocumentState.NOT_PARSED
        self.structure = None


class QueryHandler:
    """Owns open documents and answers navigation queries against them.

    Structure is parsed on the first query after an open or an edit and
    reused until the next edit marks it stale.
    """

    def __init__(
        self,
        *,
        parser: StructureParser | None = None,
        logger_name: str | None = None,
    ) -> None:
        self._documents: Dict[str, OpenDocument] = {}
        self._logger_name = logger_name
        self._parser = parser or StructureParser(logger_name=logger_name)

    @staticmethod
    def capabilities() -> dict[str, Any]:
        return {
            "textDocumentSync": {"openClose": True, "change": SYNC_INCREMENTAL},
            "definitionProvider": True,
            "referencesProvider": True,
        }

    def __contains__(self, uri: object) -> bool:
        return uri in self._documents

    def get(self, uri: str) -> OpenDocument:
        try:
            return self._documents[uri]
        except KeyError as exc:
            raise UnknownDocumentError(uri) from exc

    def open(self, uri: str, text: str) -> None:
        self._documents[uri] = OpenDocument(
            uri=uri, buffer=TextBuffer.from_text(text, name=uri)
        )
        telemetry.record_event(
            "document.open",
            data={"uri": uri, "bytes": len(self._documents[uri].buffer)},
            logger_name=self._logger_name,
        )

    def close(self, uri: str) -> None:
        self._documents.pop(uri, None)
        telemetry.record_event(
            "document.close", data={"uri": uri}, logger_name=self._logger_name
        )

    def change(self, uri: str, edits: Iterable[TextEdit]) -> None:
        document = self.get(uri)
        applied = document.buffer.apply_edits(edits)
        document.invalidate()
        telemetry.record_event(
            "document.change",
            level="debug",
            data={"uri": uri, "edits": applied, "version": document.buffer.version},
            logger_name=self._logger_name,
        )

    def structure(self, uri: str) -> StructureDocument:
        """Return the current structure of ``uri``, parsing it if stale."""

        document = self.get(uri)
        if document.state is DocumentState.NOT_PARSED:
            document.structure = self._parser.parse(document.buffer.content)
            document.state = DocumentState.PARSED
            telemetry.record_event(
                "document.parse",
                level="debug",
                data={"uri": uri, "lines": len(document.structure)},
                logger_name=self._logger_name,
            )
        assert document.structure is not None
        return document.structure

    def definition(self, uri: str, position: Position) -> List[Location]:
        with telemetry.span(
            "query::definition",
            logger_name=self._logger_name,
            component="analysis",
            metadata={"uri": uri, "position": str(position)},
        ) as handle:
            structure = self.structure(uri)
            node = structure.node_at(position.line)
            if node is None:
                handle.add_metadata("result", "out_of_range")
                return []

            target = resolve(structure, node.value)
            if target is None:
                handle.add_metadata("result", "unresolved")
                return []

            handle.add_metadata("result", target.line)
            return [Location(uri=uri, range=target.key_range)]

    def references(self, uri: str, position: Position) -> List[Location]:
        with telemetry.span(
            "query::references",
            logger_name=self._logger_name,
            component="analysis",
            metadata={"uri": uri, "position": str(position)},
        ) as handle:
            structure = self.structure(uri)
            node = structure.node_at(position.line)
            if node is None:
                handle.add_metadata("result", "out_of_range")
                return []

            pointer = pointer_of(structure, node)
            locations = [
                Location(uri=uri, range=referrer.value_range)
                for referrer in structure.nodes_with_value(pointer)
            ]
            handle.add_metadata("result", len(locations))
            return locations


__all__ = [
    "DocumentState",
    "Location",
    "OpenDocument",
    "QueryHandler",
    "UnknownDocumentError",
]
