"""Field tree models for hierarchical message structures."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any


class FieldType(str, Enum):
    """Supported field types in a structure tree"""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"


STRUCTURAL_TYPES = (FieldType.OBJECT.value, FieldType.ARRAY.value)


@dataclass
class FieldNode:
    """Represents one position (leaf, object or array) in a structure tree."""

    id: str
    name: str
    type: str
    path: str
    children: List["FieldNode"] = field(default_factory=list)
    expanded: bool = False

    @property
    def is_leaf(self) -> bool:
        """Check if node has no children"""
        return not self.children

    @property
    def is_structural(self) -> bool:
        """Check if node is typed as object or array"""
        return self.type in STRUCTURAL_TYPES

    @property
    def is_node_mappable(self) -> bool:
        """Check if node can take part in a node-to-node mapping"""
        return self.is_structural and len(self.children) > 0

    @property
    def is_array(self) -> bool:
        return self.type == FieldType.ARRAY.value

    @property
    def field_name(self) -> str:
        """Name used to match fields across trees.

        Last dot-separated segment of the name with array notation removed.
        Paths are not used because the root segment differs between the
        source and target trees.
        """
        name = self.name[:-2] if self.name.endswith("[]") else self.name
        return name.split(".")[-1] or self.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
            "expanded": self.expanded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldNode":
        """Build a node (and its subtree) from a dictionary."""
        return cls(
            id=str(data["id"]),
            name=data["name"],
            type=data.get("type", FieldType.STRING.value),
            path=data.get("path", data["name"]),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            expanded=bool(data.get("expanded", False)),
        )


def field_name(node: FieldNode) -> str:
    """Return the cross-tree join key of a node."""
    return node.field_name
