"""
Transformation Flow Graph - Source fields, functions, constants and
conditionals wired into a single target field.

The graph is a value: every operation returns a new FlowGraph and leaves the
original untouched. Node and edge records carry no rendering concerns; a UI
adapter translates them into whatever drawing toolkit is used.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fieldflow.mapper.mapping import Position
from fieldflow.schema.models import FieldNode
from fieldflow.schema.tree import find_by_id
from fieldflow.transformer.registry import FunctionDescriptor

logger = logging.getLogger(__name__)


TARGET_NODE_ID = "target"


class NodeKind(str, Enum):
    """Kinds of flow graph nodes"""
    SOURCE_FIELD = "sourceField"
    FUNCTION = "function"
    CONSTANT = "constant"
    CONDITIONAL = "conditional"
    TARGET_FIELD = "targetField"


# (x, first y, vertical step) per kind
LANES = {
    NodeKind.SOURCE_FIELD: (50, 50, 100),
    NodeKind.CONSTANT: (200, 50, 100),
    NodeKind.FUNCTION: (350, 50, 120),
    NodeKind.CONDITIONAL: (550, 50, 120),
}

TARGET_POSITION = (800, 200)

# Kinds that produce values but take no inputs
INPUTLESS_KINDS = (NodeKind.SOURCE_FIELD, NodeKind.CONSTANT)


@dataclass
class SourceFieldData:
    field: FieldNode

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceFieldData":
        return cls(field=FieldNode.from_dict(data["field"]))


@dataclass
class TargetFieldData:
    field: FieldNode

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetFieldData":
        return cls(field=FieldNode.from_dict(data["field"]))


@dataclass
class FunctionData:
    function: FunctionDescriptor
    parameters: Dict[str, str] = field(default_factory=dict)
    is_custom: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "function": self.function.to_dict(),
            "parameters": dict(self.parameters),
            "isCustom": self.is_custom,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionData":
        return cls(
            function=FunctionDescriptor.from_dict(data["function"]),
            parameters=dict(data.get("parameters") or {}),
            is_custom=bool(data.get("isCustom", False)),
        )


@dataclass
class ConstantData:
    value_type: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"valueType": self.value_type, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConstantData":
        return cls(value_type=data.get("valueType", "string"), value=data.get("value", ""))


@dataclass
class ConditionalData:
    """Comparison applied to the node's input, e.g. ("equals", "EUR")."""

    condition: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"condition": self.condition, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConditionalData":
        return cls(condition=data.get("condition", "equals"), value=data.get("value", ""))


NodeData = Union[SourceFieldData, TargetFieldData, FunctionData, ConstantData, ConditionalData]

DATA_TYPES = {
    NodeKind.SOURCE_FIELD: SourceFieldData,
    NodeKind.TARGET_FIELD: TargetFieldData,
    NodeKind.FUNCTION: FunctionData,
    NodeKind.CONSTANT: ConstantData,
    NodeKind.CONDITIONAL: ConditionalData,
}


@dataclass
class GraphNode:
    """A node of the flow graph."""

    id: str
    kind: NodeKind
    position: Position
    data: NodeData

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "position": self.position.to_dict(),
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphNode":
        try:
            kind = NodeKind(data["type"])
        except ValueError:
            raise ValueError(f"Unknown flow node type: {data['type']}")

        return cls(
            id=data["id"],
            kind=kind,
            position=Position.from_dict(data.get("position")),
            data=DATA_TYPES[kind].from_dict(data.get("data") or {}),
        )


@dataclass
class GraphEdge:
    """Connects a node output to a node input (parameter handle or implicit input)."""

    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def same_connection(self, other: "GraphEdge") -> bool:
        return (
            self.source == other.source
            and self.target == other.target
            and self.source_handle == other.source_handle
            and self.target_handle == other.target_handle
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "sourceHandle": self.source_handle,
            "target": self.target,
            "targetHandle": self.target_handle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdge":
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            source_handle=data.get("sourceHandle"),
            target_handle=data.get("targetHandle"),
        )


def make_edge_id(
    source: str,
    target: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> str:
    """Deterministic edge id from its endpoints."""
    src = f"{source}_{source_handle}" if source_handle else source
    tgt = f"{target}_{target_handle}" if target_handle else target
    return f"edge-{src}-{tgt}"


@dataclass
class FlowGraph:
    """Directed acyclic graph computing one target field's value."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    node_id_counter: int = 1

    @classmethod
    def create(cls, target_field: FieldNode) -> "FlowGraph":
        """New graph holding only the target field node."""
        target = GraphNode(
            id=TARGET_NODE_ID,
            kind=NodeKind.TARGET_FIELD,
            position=Position(*TARGET_POSITION),
            data=TargetFieldData(target_field),
        )
        return cls(nodes=[target], edges=[], node_id_counter=1)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    @property
    def target_node(self) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.kind == NodeKind.TARGET_FIELD:
                return node
        return None

    def nodes_of_kind(self, kind: NodeKind) -> List[GraphNode]:
        return [node for node in self.nodes if node.kind == kind]

    def incoming(self, node_id: str) -> List[GraphEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def outgoing(self, node_id: str) -> List[GraphEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def is_valid(self) -> bool:
        """A graph can be saved once the target node has an incoming edge."""
        target = self.target_node
        if target is None:
            return False
        return len(self.incoming(target.id)) > 0

    def wired_source_nodes(self) -> List[GraphNode]:
        """Source field nodes that feed at least one edge."""
        return [
            node for node in self.nodes_of_kind(NodeKind.SOURCE_FIELD)
            if self.outgoing(node.id)
        ]

    # ------------------------------------------------------------------
    # Node operations
    # ------------------------------------------------------------------

    def _next_position(self, kind: NodeKind) -> Position:
        x, y0, step = LANES[kind]
        return Position(x, y0 + len(self.nodes_of_kind(kind)) * step)

    def _add(self, kind: NodeKind, prefix: str, data: NodeData) -> "FlowGraph":
        node = GraphNode(
            id=f"{prefix}-{self.node_id_counter}",
            kind=kind,
            position=self._next_position(kind),
            data=data,
        )
        logger.debug(f"Added {kind.value} node {node.id}")
        return replace(
            self,
            nodes=self.nodes + [node],
            node_id_counter=self.node_id_counter + 1,
        )

    def add_source_field(self, tree: List[FieldNode], field_id: str) -> "FlowGraph":
        """
        Place a source field on the graph.

        Raises:
            KeyError: If the field id is not in the tree
        """
        source_field = find_by_id(tree, field_id)
        if source_field is None:
            raise KeyError(f"Source field not found: {field_id}")
        return self.add_field_node(source_field)

    def add_field_node(self, source_field: FieldNode) -> "FlowGraph":
        """Place an already resolved source field on the graph."""
        return self._add(NodeKind.SOURCE_FIELD, "source", SourceFieldData(source_field))

    def add_function(self, descriptor: FunctionDescriptor, is_custom: bool = False) -> "FlowGraph":
        prefix = "custom-function" if is_custom else "function"
        return self._add(NodeKind.FUNCTION, prefix, FunctionData(descriptor, {}, is_custom))

    def add_constant(self, value_type: str, value: str) -> "FlowGraph":
        return self._add(NodeKind.CONSTANT, "constant", ConstantData(value_type, value))

    def add_conditional(self, condition: str, value: str) -> "FlowGraph":
        return self._add(NodeKind.CONDITIONAL, "conditional", ConditionalData(condition, value))

    def remove(self, node_id: str) -> "FlowGraph":
        """
        Remove a node together with every edge touching it.

        Raises:
            ValueError: If the node is the target field node
        """
        node = self.get_node(node_id)
        if node is None:
            return self
        if node.kind == NodeKind.TARGET_FIELD:
            raise ValueError("The target field node cannot be removed")

        return replace(
            self,
            nodes=[n for n in self.nodes if n.id != node_id],
            edges=[e for e in self.edges if e.source != node_id and e.target != node_id],
        )

    def move_node(self, node_id: str, x: float, y: float) -> "FlowGraph":
        """Change a node's layout position."""
        self._require(node_id)
        return replace(
            self,
            nodes=[replace(n, position=Position(x, y)) if n.id == node_id else n for n in self.nodes],
        )

    def set_parameter(self, node_id: str, name: str, value: str) -> "FlowGraph":
        """
        Bind a constant argument of a function node.

        Raises:
            ValueError: If the node is not a function node
        """
        node = self._require(node_id)
        if node.kind != NodeKind.FUNCTION:
            raise ValueError(f"Node {node_id} is not a function node")

        parameters = dict(node.data.parameters)
        parameters[name] = value
        data = replace(node.data, parameters=parameters)

        return replace(
            self,
            nodes=[replace(n, data=data) if n.id == node_id else n for n in self.nodes],
        )

    # ------------------------------------------------------------------
    # Edge operations
    # ------------------------------------------------------------------

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> "FlowGraph":
        """
        Connect a node output to a node input.

        Connecting into the target field node replaces its current producer.

        Raises:
            ValueError: If an endpoint is missing, the edge would leave the
                target node or enter an input-less node, the edge would close
                a cycle, or the handle names a constant-only parameter
        """
        source_node = self._require(source)
        target_node = self._require(target)

        if source_node.kind == NodeKind.TARGET_FIELD:
            raise ValueError("The target field node has no outputs")
        if target_node.kind in INPUTLESS_KINDS:
            raise ValueError(f"{target_node.kind.value} node {target} takes no inputs")
        if source == target or self._reaches(target, source):
            raise ValueError(f"Connecting {source} to {target} would create a cycle")
        if target_node.kind == NodeKind.FUNCTION and target_handle:
            parameter = target_node.data.function.get_parameter(target_handle)
            if parameter is not None and not parameter.accepts_connection:
                raise ValueError(f"Parameter {target_handle} of {target} only takes a constant value")

        edge = GraphEdge(
            id=make_edge_id(source, target, source_handle, target_handle),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )

        edges = self.edges
        if target_node.kind == NodeKind.TARGET_FIELD:
            edges = [e for e in edges if e.target != target]
        elif any(e.same_connection(edge) for e in edges):
            return self

        return replace(self, edges=edges + [edge])

    def remove_edge(self, edge_id: str) -> "FlowGraph":
        return replace(self, edges=[e for e in self.edges if e.id != edge_id])

    def _require(self, node_id: str) -> GraphNode:
        node = self.get_node(node_id)
        if node is None:
            raise ValueError(f"Unknown flow node: {node_id}")
        return node

    def _reaches(self, start: str, goal: str) -> bool:
        """Check if goal is reachable from start following edge direction."""
        stack = [start]
        seen = set()

        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(edge.target for edge in self.outgoing(current))

        return False

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (visualFlowData format)."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "nodeIdCounter": self.node_id_counter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowGraph":
        """Restore a graph saved with to_dict."""
        return cls(
            nodes=[GraphNode.from_dict(n) for n in data.get("nodes", [])],
            edges=[GraphEdge.from_dict(e) for e in data.get("edges", [])],
            node_id_counter=int(data.get("nodeIdCounter", 1)),
        )
