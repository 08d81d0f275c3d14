"""
Unit tests for the field tree model

Tests:
- FieldNode: derived field names, node-mappable detection, dict conversion
- Tree operations: toggle, traversal, lookup
"""

import pytest

from fieldflow.schema.models import FieldNode, FieldType
from fieldflow.schema.tree import (
    toggle_expanded,
    collect_all,
    leaves,
    find_by_id,
    find_by_path,
    find_field,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def order_tree():
    """Order with a nested customer and repeated lines"""
    return [
        FieldNode(
            id="src_Order",
            name="Order",
            type="object",
            path="Order",
            children=[
                FieldNode(id="src_Order.id", name="id", type="string", path="Order.id"),
                FieldNode(
                    id="src_Order.Customer",
                    name="Customer",
                    type="object",
                    path="Order.Customer",
                    children=[
                        FieldNode(
                            id="src_Order.Customer.name",
                            name="name",
                            type="string",
                            path="Order.Customer.name",
                        ),
                    ],
                ),
                FieldNode(
                    id="src_Order.Line",
                    name="Line[]",
                    type="array",
                    path="Order.Line",
                    children=[
                        FieldNode(id="src_Order.Line.sku", name="sku", type="string", path="Order.Line.sku"),
                    ],
                ),
            ],
        )
    ]


# ============================================================================
# TEST: FieldNode
# ============================================================================


class TestFieldNode:
    """Tests for FieldNode properties"""

    def test_field_name_strips_array_suffix(self):
        """Test array notation is removed"""
        node = FieldNode(id="1", name="Line[]", type="array", path="Order.Line")
        assert node.field_name == "Line"

    def test_field_name_uses_last_segment(self):
        """Test dotted names keep only the last segment"""
        node = FieldNode(id="1", name="Order.Customer.name", type="string", path="x")
        assert node.field_name == "name"

    def test_node_mappable_requires_children(self, order_tree):
        """Test node-mappable needs a structural type and children"""
        customer = find_by_path(order_tree, "Order.Customer")
        empty_object = FieldNode(id="2", name="Empty", type="object", path="Empty")
        leaf = find_by_path(order_tree, "Order.id")

        assert customer.is_node_mappable
        assert not empty_object.is_node_mappable
        assert not leaf.is_node_mappable

    def test_is_array(self, order_tree):
        """Test array detection"""
        assert find_by_path(order_tree, "Order.Line").is_array
        assert not find_by_path(order_tree, "Order.Customer").is_array

    def test_dict_conversion(self, order_tree):
        """Test to_dict / from_dict keep the whole subtree"""
        data = order_tree[0].to_dict()

        assert data["children"][1]["children"][0]["path"] == "Order.Customer.name"
        assert FieldNode.from_dict(data) == order_tree[0]

    def test_from_dict_defaults(self):
        """Test missing type and path fall back to string and name"""
        node = FieldNode.from_dict({"id": 7, "name": "code"})

        assert node.id == "7"
        assert node.type == FieldType.STRING.value
        assert node.path == "code"
        assert node.children == []

    def test_from_dict_keeps_empty_path(self):
        """Test an explicit empty path is not replaced by the name"""
        node = FieldNode(id="t", name="code", type="string", path="")

        assert FieldNode.from_dict(node.to_dict()) == node


# ============================================================================
# TEST: Tree operations
# ============================================================================


class TestTreeOperations:
    """Tests for copy-on-write tree operations"""

    def test_toggle_expanded_nested(self, order_tree):
        """Test toggling a nested node"""
        toggled = toggle_expanded(order_tree, "src_Order.Customer")

        assert find_by_id(toggled, "src_Order.Customer").expanded is True
        assert find_by_id(order_tree, "src_Order.Customer").expanded is False

    def test_toggle_twice_restores_tree(self, order_tree):
        """Test toggle is its own inverse"""
        toggled = toggle_expanded(toggle_expanded(order_tree, "src_Order.Line"), "src_Order.Line")
        assert toggled == order_tree

    def test_toggle_keeps_untouched_branches(self, order_tree):
        """Test unrelated subtrees are shared, not copied"""
        toggled = toggle_expanded(order_tree, "src_Order.Customer")

        assert toggled[0].children[2] is order_tree[0].children[2]

    def test_toggle_unknown_id(self, order_tree):
        """Test unknown id returns an equal tree"""
        assert toggle_expanded(order_tree, "missing") == order_tree

    def test_toggle_first_match_only(self):
        """Test only the first node with a duplicated id is toggled"""
        tree = [
            FieldNode(id="dup", name="a", type="string", path="a"),
            FieldNode(id="dup", name="b", type="string", path="b"),
        ]
        toggled = toggle_expanded(tree, "dup")

        assert toggled[0].expanded is True
        assert toggled[1].expanded is False

    def test_collect_all_pre_order(self, order_tree):
        """Test traversal order is parent before children"""
        paths = [node.path for node in collect_all(order_tree)]
        assert paths == [
            "Order",
            "Order.id",
            "Order.Customer",
            "Order.Customer.name",
            "Order.Line",
            "Order.Line.sku",
        ]

    def test_leaves(self, order_tree):
        """Test only leaves are returned"""
        assert [n.name for n in leaves(order_tree)] == ["id", "name", "sku"]

    def test_find_field_by_name_or_path(self, order_tree):
        """Test lookup by name and by path"""
        assert find_field(order_tree, "sku").path == "Order.Line.sku"
        assert find_field(order_tree, "Order.Customer.name").name == "name"
        assert find_field(order_tree, "nothing") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
