"""Convert between flow graphs and persisted field mappings."""
import logging
from dataclasses import replace
from typing import List, Optional

from fieldflow.flow.graph import FlowGraph, GraphEdge, TARGET_NODE_ID, make_edge_id
from fieldflow.mapper.ids import SequentialIdGenerator
from fieldflow.mapper.mapping import FieldMapping, FunctionNodeData, VISUAL_FLOW
from fieldflow.schema.models import FieldNode, FieldType
from fieldflow.schema.tree import find_field

logger = logging.getLogger(__name__)


def save_flow(
    graph: FlowGraph,
    target_field: FieldNode,
    existing: Optional[FieldMapping] = None,
    id_generator=None,
) -> FieldMapping:
    """
    Serialize a flow graph into a field mapping.

    Args:
        graph: Flow graph to save
        target_field: Field the graph computes
        existing: Mapping the flow was opened on; its id and name are kept
        id_generator: Generator for the id of a new mapping

    Returns:
        FieldMapping carrying the full graph in visual_flow_data

    Raises:
        ValueError: If the target node has no incoming edge
    """
    if not graph.is_valid():
        raise ValueError(f"Flow for {target_field.name} has no input connected to the target")

    wired = [node.data.field for node in graph.wired_source_nodes()]

    if existing is not None:
        mapping_id, name = existing.id, existing.name
    else:
        mapping_id = (id_generator or SequentialIdGenerator()).next_id("mapping")
        name = f"visual_flow_to_{target_field.name}"

    logger.info(f"Saved flow {name} with {len(wired)} connected source fields")

    return FieldMapping(
        id=mapping_id,
        name=name,
        source_fields=[f.name for f in wired],
        source_paths=[f.path for f in wired],
        target_field=target_field.name,
        target_path=target_field.path or target_field.name,
        function_node=FunctionNodeData(id=VISUAL_FLOW, function_name=VISUAL_FLOW),
        visual_flow_data=graph.to_dict(),
        requires_transformation=True,
    )


def restore_flow(
    mapping: Optional[FieldMapping],
    source_tree: List[FieldNode],
    target_field: FieldNode,
) -> FlowGraph:
    """
    Rebuild the flow graph for an existing mapping.

    A mapping saved from a flow is restored verbatim. Any other mapping gets a
    synthesized graph: one source node per stored source, each wired straight
    into the target node.
    """
    if mapping is not None and mapping.visual_flow_data:
        return FlowGraph.from_dict(mapping.visual_flow_data)

    graph = FlowGraph.create(target_field)
    if mapping is None:
        return graph

    # Each stored source feeds the target directly; connect() would keep only the last one
    edges = []
    for source_field in _resolve_sources(mapping, source_tree):
        graph = graph.add_field_node(source_field)
        node_id = graph.nodes[-1].id
        edges.append(GraphEdge(id=make_edge_id(node_id, TARGET_NODE_ID), source=node_id, target=TARGET_NODE_ID))

    return replace(graph, edges=edges)


def _resolve_sources(mapping: FieldMapping, source_tree: List[FieldNode]) -> List[FieldNode]:
    """Look up stored sources in the tree, fabricating leaves for missing ones."""
    keys = mapping.source_paths or mapping.source_fields
    resolved = []

    for index, key in enumerate(keys):
        found = find_field(source_tree, key, key)
        if found is not None:
            resolved.append(found)
            continue

        if index < len(mapping.source_fields):
            name = mapping.source_fields[index]
        else:
            name = key.split(".")[-1]

        logger.warning(f"Source field {key} not found in the source structure, restoring as {name}")
        resolved.append(
            FieldNode(
                id=f"source_{name}_{index}",
                name=name,
                type=FieldType.STRING.value,
                path=key,
            )
        )

    return resolved
