"""
Unit tests for the transformation flow graph

Tests:
- FlowGraph: ids, lane layout, connect rules, removal, parameters
- Persistence: save_flow / restore_flow, verbatim and synthesized restore
- FlowEditorSession: lifecycle states
"""

import json
import pytest

from fieldflow.flow.editor import FlowEditorSession, EditorState
from fieldflow.flow.graph import FlowGraph, NodeKind, TARGET_NODE_ID, ConstantData
from fieldflow.flow.persistence import save_flow, restore_flow
from fieldflow.mapper.ids import SequentialIdGenerator
from fieldflow.mapper.mapping import FieldMapping, VISUAL_FLOW
from fieldflow.schema.models import FieldNode
from fieldflow.transformer.registry import FunctionCatalog


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def source_tree():
    """Person with first and last name"""
    return [
        FieldNode(
            id="src_Person",
            name="Person",
            type="object",
            path="Person",
            children=[
                FieldNode(id="src_Person.first", name="first", type="string", path="Person.first"),
                FieldNode(id="src_Person.last", name="last", type="string", path="Person.last"),
            ],
        )
    ]


@pytest.fixture
def target_field():
    return FieldNode(id="tgt_Customer.fullName", name="fullName", type="string", path="Customer.fullName")


@pytest.fixture
def catalog():
    return FunctionCatalog()


@pytest.fixture
def concat_graph(source_tree, target_field, catalog):
    """first + last -> concat -> fullName, with a constant delimiter"""
    graph = FlowGraph.create(target_field)
    graph = graph.add_source_field(source_tree, "src_Person.first")    # source-1
    graph = graph.add_source_field(source_tree, "src_Person.last")     # source-2
    graph = graph.add_function(catalog.get("concat"))                  # function-3
    graph = graph.connect("source-1", "function-3", target_handle="string1")
    graph = graph.connect("source-2", "function-3", target_handle="string2")
    graph = graph.set_parameter("function-3", "delimiter", " ")
    graph = graph.connect("function-3", TARGET_NODE_ID)
    return graph


# ============================================================================
# TEST: FlowGraph
# ============================================================================


class TestFlowGraph:
    """Tests for FlowGraph operations"""

    def test_create(self, target_field):
        """Test new graph holds only the target node"""
        graph = FlowGraph.create(target_field)

        assert [n.id for n in graph.nodes] == [TARGET_NODE_ID]
        assert graph.edges == []
        assert graph.node_id_counter == 1
        assert graph.target_node.position.to_dict() == {"x": 800, "y": 200}
        assert not graph.is_valid()

    def test_ids_and_lanes(self, source_tree, target_field, catalog):
        """Test fresh ids come from the counter and nodes stack in their lane"""
        graph = FlowGraph.create(target_field)
        graph = graph.add_source_field(source_tree, "src_Person.first")
        graph = graph.add_source_field(source_tree, "src_Person.last")
        graph = graph.add_function(catalog.get("toUpperCase"))
        graph = graph.add_constant("string", "Mr")
        graph = graph.add_conditional("equals", "EUR")
        graph = graph.add_function(FunctionCatalog.custom("normalize"), is_custom=True)

        layout = {n.id: (n.position.x, n.position.y) for n in graph.nodes}

        assert layout == {
            "target": (800, 200),
            "source-1": (50, 50),
            "source-2": (50, 150),
            "function-3": (350, 50),
            "constant-4": (200, 50),
            "conditional-5": (550, 50),
            "custom-function-6": (350, 170),
        }
        assert graph.node_id_counter == 7

    def test_operations_do_not_mutate(self, source_tree, target_field):
        """Test each operation returns a new graph"""
        graph = FlowGraph.create(target_field)
        graph.add_source_field(source_tree, "src_Person.first")

        assert len(graph.nodes) == 1
        assert graph.node_id_counter == 1

    def test_unknown_source_field(self, source_tree, target_field):
        """Test placing a field that is not in the tree"""
        with pytest.raises(KeyError):
            FlowGraph.create(target_field).add_source_field(source_tree, "src_Person.age")

    def test_connect_edge_id(self, concat_graph):
        """Test deterministic edge ids"""
        ids = [e.id for e in concat_graph.edges]
        assert ids == [
            "edge-source-1-function-3_string1",
            "edge-source-2-function-3_string2",
            "edge-function-3-target",
        ]

    def test_single_target_producer(self, source_tree, target_field):
        """Test a new edge into the target replaces the old one"""
        graph = FlowGraph.create(target_field)
        graph = graph.add_source_field(source_tree, "src_Person.first")
        graph = graph.add_source_field(source_tree, "src_Person.last")
        graph = graph.connect("source-1", TARGET_NODE_ID)
        graph = graph.connect("source-2", TARGET_NODE_ID)
        graph = graph.connect("source-1", TARGET_NODE_ID)

        incoming = graph.incoming(TARGET_NODE_ID)
        assert [e.source for e in incoming] == ["source-1"]

    def test_duplicate_edge_ignored(self, concat_graph):
        """Test an identical edge is not added twice"""
        graph = concat_graph.connect("source-1", "function-3", target_handle="string1")
        assert graph.edges == concat_graph.edges

    def test_connect_missing_node(self, concat_graph):
        """Test edges need existing endpoints"""
        with pytest.raises(ValueError):
            concat_graph.connect("source-9", TARGET_NODE_ID)

    def test_connect_from_target(self, concat_graph):
        """Test the target node has no outputs"""
        with pytest.raises(ValueError):
            concat_graph.connect(TARGET_NODE_ID, "function-3")

    def test_connect_into_source(self, concat_graph):
        """Test source nodes take no inputs"""
        with pytest.raises(ValueError):
            concat_graph.connect("function-3", "source-1")

    def test_connect_cycle(self, concat_graph, catalog):
        """Test edges closing a cycle are rejected"""
        graph = concat_graph.add_function(catalog.get("trim"))  # function-4
        graph = graph.connect("function-3", "function-4")

        with pytest.raises(ValueError):
            graph.connect("function-4", "function-3")

        with pytest.raises(ValueError):
            graph.connect("function-4", "function-4")

    def test_connect_into_constant_parameter(self, concat_graph):
        """Test delimiter-like parameters only take constant values"""
        with pytest.raises(ValueError):
            concat_graph.connect("source-1", "function-3", target_handle="delimiter")

        graph = concat_graph.remove_edge("edge-source-1-function-3_string1")
        graph = graph.connect("source-1", "function-3", target_handle="string1")
        assert len(graph.incoming("function-3")) == 2

    def test_remove_drops_edges(self, concat_graph):
        """Test no edge references a removed node"""
        graph = concat_graph.remove("function-3")

        assert graph.get_node("function-3") is None
        assert all("function-3" not in (e.source, e.target) for e in graph.edges)
        assert graph.edges == []
        assert not graph.is_valid()

    def test_remove_target(self, concat_graph):
        """Test the target node cannot be removed"""
        with pytest.raises(ValueError):
            concat_graph.remove(TARGET_NODE_ID)

    def test_remove_edge(self, concat_graph):
        """Test removing the target edge invalidates the graph"""
        graph = concat_graph.remove_edge("edge-function-3-target")

        assert len(graph.edges) == 2
        assert not graph.is_valid()

    def test_set_parameter(self, concat_graph):
        """Test constant arguments are stored on the function node"""
        node = concat_graph.get_node("function-3")
        assert node.data.parameters == {"delimiter": " "}

    def test_set_parameter_on_non_function(self, concat_graph):
        """Test parameters only apply to function nodes"""
        with pytest.raises(ValueError):
            concat_graph.set_parameter("source-1", "x", "1")

    def test_move_node(self, concat_graph):
        """Test layout changes"""
        graph = concat_graph.move_node("function-3", 400, 90)
        assert graph.get_node("function-3").position.to_dict() == {"x": 400, "y": 90}

    def test_wired_source_nodes(self, concat_graph, source_tree):
        """Test placed but unconnected sources are not wired"""
        graph = concat_graph.add_source_field(source_tree, "src_Person")
        assert [n.id for n in graph.wired_source_nodes()] == ["source-1", "source-2"]

    def test_dict_round_trip(self, concat_graph):
        """Test to_dict / from_dict through JSON"""
        data = json.loads(json.dumps(concat_graph.to_dict()))

        assert data["nodeIdCounter"] == 4
        assert data["nodes"][3]["type"] == "function"
        assert data["nodes"][3]["data"]["parameters"] == {"delimiter": " "}
        assert FlowGraph.from_dict(data) == concat_graph

    def test_unknown_node_type(self):
        """Test unknown node kinds are rejected on load"""
        data = {"nodes": [{"id": "x", "type": "widget", "data": {}}], "edges": []}
        with pytest.raises(ValueError):
            FlowGraph.from_dict(data)


# ============================================================================
# TEST: Persistence
# ============================================================================


class TestFlowPersistence:
    """Tests for save_flow / restore_flow"""

    def test_save(self, concat_graph, target_field):
        """Test flattened summary of a saved flow"""
        mapping = save_flow(concat_graph, target_field, id_generator=SequentialIdGenerator())

        assert mapping.id == "mapping_1"
        assert mapping.name == "visual_flow_to_fullName"
        assert mapping.source_fields == ["first", "last"]
        assert mapping.source_paths == ["Person.first", "Person.last"]
        assert mapping.target_path == "Customer.fullName"
        assert mapping.function_node.function_name == VISUAL_FLOW
        assert mapping.is_visual_flow
        assert mapping.requires_transformation is True
        assert mapping.visual_flow_data == concat_graph.to_dict()

    def test_save_skips_unwired_sources(self, concat_graph, source_tree, target_field):
        """Test sources merely placed on the canvas are not listed"""
        graph = concat_graph.add_source_field(source_tree, "src_Person")
        mapping = save_flow(graph, target_field)

        assert mapping.source_paths == ["Person.first", "Person.last"]

    def test_save_invalid(self, target_field):
        """Test a flow without a target input cannot be saved"""
        with pytest.raises(ValueError):
            save_flow(FlowGraph.create(target_field), target_field)

    def test_save_keeps_existing_identity(self, concat_graph, target_field):
        """Test re-saving keeps id and name"""
        existing = FieldMapping(
            id="mapping_42",
            name="full_name",
            source_fields=["first"],
            source_paths=["Person.first"],
            target_field="fullName",
            target_path="Customer.fullName",
        )
        mapping = save_flow(concat_graph, target_field, existing)

        assert (mapping.id, mapping.name) == ("mapping_42", "full_name")

    def test_target_path_falls_back_to_name(self, source_tree):
        """Test missing target path"""
        target = FieldNode(id="t", name="code", type="string", path="")
        graph = FlowGraph.create(target).add_source_field(source_tree, "src_Person.first")
        graph = graph.connect("source-1", TARGET_NODE_ID)

        assert save_flow(graph, target).target_path == "code"

    def test_target_with_empty_path_round_trip(self, source_tree):
        """Test an empty target path survives to_dict / from_dict"""
        target = FieldNode(id="t", name="code", type="string", path="")
        graph = FlowGraph.create(target).add_source_field(source_tree, "src_Person.first")
        graph = graph.connect("source-1", TARGET_NODE_ID)

        restored = FlowGraph.from_dict(json.loads(json.dumps(graph.to_dict())))

        assert restored == graph
        assert restored.target_node.data.field.path == ""

    def test_round_trip(self, concat_graph, source_tree, target_field):
        """Test restore(save(g)) gives back g through the export format"""
        mapping = save_flow(concat_graph, target_field)
        exported = FieldMapping.from_dict(json.loads(json.dumps(mapping.to_dict())))

        restored = restore_flow(exported, source_tree, target_field)

        assert restored == concat_graph
        assert restored.node_id_counter == concat_graph.node_id_counter

    def test_synthesized_restore(self, source_tree, target_field):
        """Test a plain mapping gets one wired source node per source"""
        mapping = FieldMapping(
            id="m1",
            name="merge",
            source_fields=["first", "last"],
            source_paths=["Person.first", "Person.last"],
            target_field="fullName",
            target_path="Customer.fullName",
        )

        graph = restore_flow(mapping, source_tree, target_field)

        assert [n.id for n in graph.nodes] == ["target", "source-1", "source-2"]
        assert [n.data.field.path for n in graph.nodes_of_kind(NodeKind.SOURCE_FIELD)] == [
            "Person.first",
            "Person.last",
        ]
        assert [e.id for e in graph.edges] == ["edge-source-1-target", "edge-source-2-target"]
        assert graph.node_id_counter == 3
        assert graph.is_valid()

    def test_synthesized_restore_from_names(self, source_tree, target_field):
        """Test source names are used when paths are absent"""
        mapping = FieldMapping(
            id="m1",
            name="legacy",
            source_fields=["last"],
            source_paths=[],
            target_field="fullName",
            target_path="Customer.fullName",
        )

        graph = restore_flow(mapping, source_tree, target_field)
        assert graph.get_node("source-1").data.field.id == "src_Person.last"

    def test_restore_with_schema_drift(self, source_tree, target_field):
        """Test missing sources are fabricated as string leaves"""
        mapping = FieldMapping(
            id="m1",
            name="drifted",
            source_fields=["middle"],
            source_paths=["Person.middle"],
            target_field="fullName",
            target_path="Customer.fullName",
        )

        graph = restore_flow(mapping, source_tree, target_field)
        fabricated = graph.get_node("source-1").data.field

        assert fabricated.name == "middle"
        assert fabricated.path == "Person.middle"
        assert fabricated.type == "string"
        assert graph.is_valid()

    def test_restore_without_mapping(self, source_tree, target_field):
        """Test a new flow starts empty"""
        graph = restore_flow(None, source_tree, target_field)
        assert graph == FlowGraph.create(target_field)


# ============================================================================
# TEST: FlowEditorSession
# ============================================================================


class TestFlowEditorSession:
    """Tests for the editor lifecycle"""

    def test_states(self, source_tree, target_field):
        """Test empty -> invalid -> valid -> invalid -> valid -> saved"""
        session = FlowEditorSession(target_field, source_tree)
        assert session.state == EditorState.EMPTY

        source_id = session.add_source_field("src_Person.first")
        assert source_id == "source-1"
        assert session.state == EditorState.INVALID

        session.connect(source_id, TARGET_NODE_ID)
        assert session.state == EditorState.VALID

        session.remove_edge("edge-source-1-target")
        assert session.state == EditorState.INVALID

        session.connect(source_id, TARGET_NODE_ID)
        mapping = session.save()

        assert session.state == EditorState.SAVED
        assert mapping.source_paths == ["Person.first"]

    def test_saved_is_terminal(self, source_tree, target_field):
        """Test no edits after save"""
        session = FlowEditorSession(target_field, source_tree)
        session.connect(session.add_source_field("src_Person.first"), TARGET_NODE_ID)
        session.save()

        with pytest.raises(RuntimeError):
            session.add_constant("string", "x")

        with pytest.raises(RuntimeError):
            session.save()

    def test_function_nodes(self, source_tree, target_field):
        """Test catalog and custom functions"""
        session = FlowEditorSession(target_field, source_tree)

        assert session.add_function("toUpperCase") == "function-1"
        assert session.add_custom_function("clean") == "custom-function-2"
        assert session.graph.get_node("custom-function-2").data.is_custom

        with pytest.raises(KeyError):
            session.add_function("doesNotExist")

    def test_constant_node(self, source_tree, target_field):
        """Test constant value wired into the target"""
        session = FlowEditorSession(target_field, source_tree)
        constant_id = session.add_constant("number", "0")
        session.connect(constant_id, TARGET_NODE_ID)

        assert session.graph.get_node(constant_id).data == ConstantData("number", "0")
        assert session.save().source_fields == []

    def test_close_discards(self, source_tree, target_field):
        """Test closing drops unsaved work"""
        session = FlowEditorSession(target_field, source_tree)
        session.add_source_field("src_Person.first")

        assert session.close() is None
        assert session.graph is None

        with pytest.raises(RuntimeError):
            session.add_constant("string", "x")

    def test_reopen_existing_flow(self, concat_graph, source_tree, target_field):
        """Test editing a saved flow keeps its identity"""
        saved = save_flow(concat_graph, target_field, id_generator=SequentialIdGenerator())

        session = FlowEditorSession(target_field, source_tree, mapping=saved)
        assert session.graph == concat_graph
        assert session.state == EditorState.VALID

        session.remove("source-2")
        mapping = session.save()

        assert mapping.id == saved.id
        assert mapping.source_paths == ["Person.first"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
