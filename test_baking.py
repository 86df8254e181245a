import copy

import pytest

from baking import BakingPass, find_node
from keyframe_logic import ValueDriver
from keyframe_store import KeyframeStore

def make_tree(x=0):
    return {"id": "root", "children": [
        {"id": "box-1", "x": x, "y": 0, "children": [
            {"id": "label", "paddingLeft": 1, "children": []},
        ]},
    ]}

@pytest.fixture
def snapshots():
    return [make_tree() for _ in range(11)]

@pytest.fixture
def store():
    return KeyframeStore().upsert("box-1", "x", 0, 0.0).upsert("box-1", "x", 10, 100.0).upsert("label", "paddingLeft", 4, 3.0)


class TestFindNode:
    def test_finds_nested_node(self):
        assert find_node(make_tree(), "label")["paddingLeft"] == 1

    def test_missing_node(self):
        assert find_node(make_tree(), "ghost") is None


class TestBakingPass:
    def test_empty_store_is_identity(self, snapshots):
        assert BakingPass.bake(snapshots, KeyframeStore()) is snapshots

    def test_writes_driven_values(self, snapshots, store):
        baked = BakingPass.bake(snapshots, store)
        assert len(baked) == len(snapshots)
        prop = store.get("box-1", "x")
        for i, tree in enumerate(baked):
            assert find_node(tree, "box-1")["x"] == ValueDriver.drive(prop, i)
            assert find_node(tree, "label")["paddingLeft"] == 3.0
        assert find_node(baked[0], "box-1")["x"] == 0.0
        assert find_node(baked[10], "box-1")["x"] == 100.0

    def test_inputs_are_not_mutated(self, snapshots, store):
        before = copy.deepcopy(snapshots)
        BakingPass.bake(snapshots, store)
        assert snapshots == before

    def test_missing_nodes_are_skipped(self, snapshots, store):
        baked = BakingPass.bake(snapshots, store.upsert("deleted-node", "x", 0, 5.0))
        assert find_node(baked[3], "deleted-node") is None
        assert find_node(baked[3], "box-1")["x"] == ValueDriver.drive(store.get("box-1", "x"), 3)

    def test_custom_resolvers(self, store):
        class Node:
            def __init__(self, node_id): self.id, self.x = node_id, 0

        nodes = [{"box-1": Node("box-1")} for _ in range(3)]
        baked = BakingPass.bake(nodes, store, find_node=lambda tree, node_id: tree.get(node_id),
                                set_value=lambda node, prop, value: setattr(node, prop, value))
        assert baked[2]["box-1"].x == ValueDriver.drive(store.get("box-1", "x"), 2)
        assert nodes[2]["box-1"].x == 0

    def test_object_nodes_use_attributes_by_default(self, store):
        class Node:
            def __init__(self): self.x = 0

        def lookup(tree, node_id):
            return tree if node_id == "box-1" else None

        baked = BakingPass.bake([Node(), Node()], store, find_node=lookup)
        assert baked[1].x == ValueDriver.drive(store.get("box-1", "x"), 1)

    def test_bake_frame(self, store):
        tree = make_tree()
        baked = BakingPass.bake_frame(tree, store, 10)
        assert find_node(baked, "box-1")["x"] == 100.0
        assert find_node(tree, "box-1")["x"] == 0
