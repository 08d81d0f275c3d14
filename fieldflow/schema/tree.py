"""Copy-on-write operations over structure trees.

Every function returns new values and leaves the input tree untouched, so
two snapshots of a tree can be compared with plain equality.
"""
from dataclasses import replace
from typing import List, Optional, Iterator, Tuple

from fieldflow.schema.models import FieldNode


def toggle_expanded(tree: List[FieldNode], node_id: str) -> List[FieldNode]:
    """
    Invert the expanded flag of the first node with the given id.

    Args:
        tree: Root nodes of the tree
        node_id: Id of the node to toggle

    Returns:
        New tree; unchanged copy when the id is not found
    """
    new_tree, _ = _toggle(tree, node_id)
    return new_tree


def _toggle(nodes: List[FieldNode], node_id: str) -> Tuple[List[FieldNode], bool]:
    result = []
    found = False

    for node in nodes:
        if found:
            result.append(node)
        elif node.id == node_id:
            result.append(replace(node, expanded=not node.expanded))
            found = True
        elif node.children:
            children, found = _toggle(node.children, node_id)
            result.append(replace(node, children=children) if found else node)
        else:
            result.append(node)

    return result, found


def iter_nodes(tree: List[FieldNode]) -> Iterator[FieldNode]:
    """Yield every node in pre-order."""
    for node in tree:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def collect_all(tree: List[FieldNode]) -> List[FieldNode]:
    """Collect all nodes (leaves, arrays and objects) in pre-order."""
    return list(iter_nodes(tree))


def leaves(tree: List[FieldNode]) -> List[FieldNode]:
    """Collect leaf nodes only."""
    return [node for node in iter_nodes(tree) if node.is_leaf]


def find_by_id(tree: List[FieldNode], node_id: str) -> Optional[FieldNode]:
    """Return node by id."""
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def find_by_path(tree: List[FieldNode], path: str) -> Optional[FieldNode]:
    """Return node by path."""
    for node in iter_nodes(tree):
        if node.path == path:
            return node
    return None


def find_field(
    tree: List[FieldNode],
    name_or_path: str,
    path: Optional[str] = None,
) -> Optional[FieldNode]:
    """
    Find the first node whose name or path matches.

    Args:
        tree: Root nodes of the tree
        name_or_path: Value compared against both name and path
        path: Optional extra path to match

    Returns:
        FieldNode or None
    """
    for node in iter_nodes(tree):
        if node.name == name_or_path or node.path == name_or_path:
            return node
        if path and node.path == path:
            return node
    return None
