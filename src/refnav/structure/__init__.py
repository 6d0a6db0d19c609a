"""Indentation-derived document structure and pointer resolution."""

from .models import StructureDocument, StructureNode
from .parser import StructureParser, parse_document, split_lines
from .pointers import POINTER_PREFIX, pointer_of, resolve

__all__ = [
    "StructureDocument",
    "StructureNode",
    "StructureParser",
    "parse_document",
    "split_lines",
    "POINTER_PREFIX",
    "pointer_of",
    "resolve",
]
