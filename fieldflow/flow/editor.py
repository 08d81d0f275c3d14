"""Editing session around a single transformation flow graph."""
import logging
from enum import Enum
from typing import List, Optional

from fieldflow.flow.graph import FlowGraph
from fieldflow.flow.persistence import restore_flow, save_flow
from fieldflow.mapper.mapping import FieldMapping
from fieldflow.schema.models import FieldNode
from fieldflow.transformer.registry import FunctionCatalog

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    """Lifecycle of a flow editor session"""
    EMPTY = "empty"
    INVALID = "invalid"
    VALID = "valid"
    SAVED = "saved"
    CLOSED = "closed"


class FlowEditorSession:
    """
    Owns one flow graph for one target field.

    Usage:
    ```python
    session = FlowEditorSession(target_field, source_tree)
    source_id = session.add_source_field("src_Order.Id")
    session.connect(source_id, "target")
    mapping = session.save()
    ```
    """

    def __init__(
        self,
        target_field: FieldNode,
        source_tree: List[FieldNode],
        mapping: Optional[FieldMapping] = None,
        catalog: Optional[FunctionCatalog] = None,
        id_generator=None,
    ):
        self.target_field = target_field
        self.source_tree = source_tree
        self.mapping = mapping
        self.catalog = catalog or FunctionCatalog()
        self.id_generator = id_generator
        self.graph: Optional[FlowGraph] = restore_flow(mapping, source_tree, target_field)
        self.saved_mapping: Optional[FieldMapping] = None

    @property
    def state(self) -> EditorState:
        if self.saved_mapping is not None:
            return EditorState.SAVED
        if self.graph is None:
            return EditorState.CLOSED
        if self.graph.is_valid():
            return EditorState.VALID
        if len(self.graph.nodes) <= 1 and not self.graph.edges:
            return EditorState.EMPTY
        return EditorState.INVALID

    def _apply(self, graph: FlowGraph) -> FlowGraph:
        self.graph = graph
        return graph

    def _editable(self) -> FlowGraph:
        if self.saved_mapping is not None:
            raise RuntimeError("Flow has already been saved")
        if self.graph is None:
            raise RuntimeError("Flow editor is closed")
        return self.graph

    def _last_node_id(self) -> str:
        return self.graph.nodes[-1].id

    def add_source_field(self, field_id: str) -> str:
        """Place a source field and return the new node id."""
        self._apply(self._editable().add_source_field(self.source_tree, field_id))
        return self._last_node_id()

    def add_function(self, name: str) -> str:
        """Place a catalog function and return the new node id."""
        descriptor = self.catalog.get(name)
        self._apply(self._editable().add_function(descriptor))
        return self._last_node_id()

    def add_custom_function(self, name: str = "custom") -> str:
        self._apply(self._editable().add_function(FunctionCatalog.custom(name), is_custom=True))
        return self._last_node_id()

    def add_constant(self, value_type: str, value: str) -> str:
        self._apply(self._editable().add_constant(value_type, value))
        return self._last_node_id()

    def add_conditional(self, condition: str, value: str) -> str:
        self._apply(self._editable().add_conditional(condition, value))
        return self._last_node_id()

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> FlowGraph:
        return self._apply(self._editable().connect(source, target, source_handle, target_handle))

    def remove(self, node_id: str) -> FlowGraph:
        return self._apply(self._editable().remove(node_id))

    def remove_edge(self, edge_id: str) -> FlowGraph:
        return self._apply(self._editable().remove_edge(edge_id))

    def set_parameter(self, node_id: str, name: str, value: str) -> FlowGraph:
        return self._apply(self._editable().set_parameter(node_id, name, value))

    def move_node(self, node_id: str, x: float, y: float) -> FlowGraph:
        return self._apply(self._editable().move_node(node_id, x, y))

    def save(self) -> FieldMapping:
        """
        Save the flow as a field mapping.

        Raises:
            ValueError: If the target node is not connected
            RuntimeError: If the session was already saved or closed
        """
        graph = self._editable()
        self.saved_mapping = save_flow(graph, self.target_field, self.mapping, self.id_generator)
        return self.saved_mapping

    def close(self) -> Optional[FieldMapping]:
        """End the session, discarding any unsaved graph. Returns the saved mapping if any."""
        if self.saved_mapping is None and self.graph is not None:
            logger.info(f"Discarded unsaved flow for {self.target_field.name}")
        self.graph = None
        return self.saved_mapping
