"""
Field Tree Model

Canonical in-memory representation of a hierarchical message structure:
- FieldNode: object/array/leaf node with a dotted path
- Copy-on-write tree operations (toggle, traversal, lookup)
"""

from .models import FieldNode, FieldType, field_name
from .tree import (
    toggle_expanded,
    collect_all,
    iter_nodes,
    leaves,
    find_by_id,
    find_by_path,
    find_field,
)

__all__ = [
    "FieldNode",
    "FieldType",
    "field_name",
    "toggle_expanded",
    "collect_all",
    "iter_nodes",
    "leaves",
    "find_by_id",
    "find_by_path",
    "find_field",
]
