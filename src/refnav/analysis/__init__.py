"""Navigation queries over open documents."""

from .handler import (
    DocumentState,
    Location,
    OpenDocument,
    QueryHandler,
    UnknownDocumentError,
)

__all__ = [
    "DocumentState",
    "Location",
    "OpenDocument",
    "QueryHandler",
    "UnknownDocumentError",
]
