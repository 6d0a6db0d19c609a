"""Arena-backed node model produced by the structure parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional

from refnav.buffer.positions import Range


@dataclass(slots=True)
class StructureNode:
    """One physical source line.

    ``parent`` and ``children`` hold arena indices into the owning
    :class:`StructureDocument` rather than node references.
    """

    index: int
    indent: int
    key_range: Range
    value_range: Range
    key: str = ""
    value: str = ""
    keyed: bool = False
    parent: Optional[int] = None
    children: Dict[str, int] = field(default_factory=dict)

    @property
    def line(self) -> int:
        return self.index

    def to_dict(self) -> dict[str, object]:
        return {
            "line": self.index,
            "indent": self.indent,
            "key": self.key,
            "value": self.value,
            "keyed": self.keyed,
            "key_range": self.key_range.to_json(),
            "value_range": self.value_range.to_json(),
            "parent": self.parent,
            "children": dict(self.children),
        }


@dataclass(slots=True)
class StructureDocument:
    """Ordered per-line nodes plus the top-level key lookup.

    Duplicate keys overwrite earlier entries in ``roots`` and in each node's
    ``children`` while every line stays in ``nodes``.
    """

    nodes: List[StructureNode] = field(default_factory=list)
    roots: Dict[str, int] = field(default_factory=dict)
    value_index: Dict[str, List[int]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[StructureNode]:
        return iter(self.nodes)

    def __getitem__(self, index: int) -> StructureNode:
        return self.nodes[index]

    def node_at(self, line: int) -> Optional[StructureNode]:
        if 0 <= line < len(self.nodes):
            return self.nodes[line]
        return None

    def parent_of(self, node: StructureNode) -> Optional[StructureNode]:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def child(self, node: StructureNode, key: str) -> Optional[StructureNode]:
        index = node.children.get(key)
        return self.nodes[index] if index is not None else None

    def root(self, key: str) -> Optional[StructureNode]:
        index = self.roots.get(key)
        return self.nodes[index] if index is not None else None

    def children_of(self, node: StructureNode) -> Mapping[str, StructureNode]:
        return {key: self.nodes[index] for key, index in node.children.items()}

    def nodes_with_value(self, value: str) -> List[StructureNode]:
        return [self.nodes[index] for index in self.value_index.get(value, ())]

    def to_dict(self) -> dict[str, object]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "roots": dict(self.roots),
        }


__all__ = ["StructureNode", "StructureDocument"]
