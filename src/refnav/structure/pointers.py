"""JSON-Pointer style addressing of structure nodes.

Pointers look like ``#/components/schemas/Pet``. Keys are joined verbatim;
``/`` and ``~`` inside keys are not escaped, so such keys do not round-trip.
"""

from __future__ import annotations

from typing import Optional

from .models import StructureDocument, StructureNode

POINTER_PREFIX = "#/"
SEPARATOR = "/"


def pointer_of(document: StructureDocument, node: StructureNode) -> str:
    """Render the canonical pointer of ``node`` by walking its parents."""

    keys = []
    current: Optional[StructureNode] = node
    while current is not None:
        keys.append(current.key)
        current = document.parent_of(current)
    keys.reverse()
    return POINTER_PREFIX + SEPARATOR.join(keys)


def resolve(document: StructureDocument, pointer: str) -> Optional[StructureNode]:
    """Return the node addressed by ``pointer`` or ``None`` when nothing matches.

    The first segment (normally ``#``) is ignored; the second is looked up
    among the roots and each later segment descends one level.
    """

    segments = pointer.split(SEPARATOR)
    if len(segments) < 2:
        return None

    current = document.root(segments[1])
    for key in segments[2:]:
        if current is None:
            return None
        current = document.child(current, key)
    return current


__all__ = ["POINTER_PREFIX", "pointer_of", "resolve"]
