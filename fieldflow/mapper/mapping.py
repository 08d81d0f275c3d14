"""Field mapping model."""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from fieldflow.schema.models import FieldNode


NODE_MAPPING = "nodeMapping"
VISUAL_FLOW = "visual_flow"


@dataclass
class Position:
    """Layout position (x, y)."""

    x: float = 0
    y: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Position":
        data = data or {}
        return cls(x=data.get("x", 0), y=data.get("y", 0))


@dataclass
class FunctionNodeData:
    """A single transformation function bound into a mapping."""

    id: str
    function_name: str
    parameters: Dict[str, str] = field(default_factory=dict)
    source_connections: Dict[str, List[str]] = field(default_factory=dict)
    position: Position = field(default_factory=Position)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "functionName": self.function_name,
            "parameters": dict(self.parameters),
            "sourceConnections": {k: list(v) for k, v in self.source_connections.items()},
            "position": self.position.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionNodeData":
        return cls(
            id=data.get("id", ""),
            function_name=data["functionName"],
            parameters=dict(data.get("parameters") or {}),
            source_connections={k: list(v) for k, v in (data.get("sourceConnections") or {}).items()},
            position=Position.from_dict(data.get("position")),
        )


@dataclass
class FieldMapping:
    """Represents a mapping from one or more source fields to a target field."""

    id: str
    name: str
    source_fields: List[str]
    source_paths: List[str]
    target_field: str
    target_path: str
    function_node: Optional[FunctionNodeData] = None
    visual_flow_data: Optional[Dict[str, Any]] = None
    requires_transformation: bool = True

    @property
    def is_node_mapping(self) -> bool:
        return self.function_node is not None and self.function_node.function_name == NODE_MAPPING

    @property
    def is_visual_flow(self) -> bool:
        return self.function_node is not None and self.function_node.function_name == VISUAL_FLOW

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (export format)."""
        data = {
            "id": self.id,
            "name": self.name,
            "sourceFields": list(self.source_fields),
            "sourcePaths": list(self.source_paths),
            "targetField": self.target_field,
            "targetPath": self.target_path,
            "requiresTransformation": self.requires_transformation,
        }

        if self.function_node is not None:
            data["functionNode"] = self.function_node.to_dict()

        if self.visual_flow_data is not None:
            data["visualFlowData"] = self.visual_flow_data

        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """Build a mapping from its export format."""
        function_node = data.get("functionNode")
        requires = data.get("requiresTransformation")

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            source_fields=list(data.get("sourceFields") or []),
            source_paths=list(data.get("sourcePaths") or []),
            target_field=data.get("targetField", ""),
            target_path=data.get("targetPath") or data.get("targetField", ""),
            function_node=FunctionNodeData.from_dict(function_node) if function_node else None,
            visual_flow_data=data.get("visualFlowData"),
            requires_transformation=True if requires is None else bool(requires),
        )


def node_mapping_function(
    node_id: str,
    source: FieldNode,
    target: FieldNode,
) -> FunctionNodeData:
    """
    Build the node-mapping marker for two structural fields.

    The execution engine maps matching descendants recursively when it sees
    this marker.
    """
    is_array = source.is_array or target.is_array
    return FunctionNodeData(
        id=node_id,
        function_name=NODE_MAPPING,
        parameters={
            "sourceType": source.type,
            "targetType": target.type,
            "isArrayMapping": "true" if is_array else "false",
        },
    )


def build_mapping(
    mapping_id: str,
    source: FieldNode,
    target: FieldNode,
    node_id: Optional[str] = None,
) -> FieldMapping:
    """
    Create a one-to-one mapping between two fields.

    Args:
        mapping_id: Id of the new mapping
        source: Source field
        target: Target field
        node_id: Id for the node-mapping marker; the marker is only added
            when given and both fields are node-mappable

    Returns:
        FieldMapping
    """
    function_node = None
    if node_id and source.is_node_mappable and target.is_node_mappable:
        function_node = node_mapping_function(node_id, source, target)

    return FieldMapping(
        id=mapping_id,
        name=f"{source.name}_to_{target.name}",
        source_fields=[source.name],
        source_paths=[source.path],
        target_field=target.name,
        target_path=target.path,
        function_node=function_node,
    )
