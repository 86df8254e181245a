# baking.py
import copy
from collections.abc import MutableMapping

from keyframe_logic import ValueDriver


def find_node(tree, node_id):
    """Depth-first lookup of `node_id` in a tree of {"id": ..., "children": [...]} mappings."""
    if tree is None: return None
    if tree.get("id") == node_id: return tree
    for child in tree.get("children") or []:
        found = find_node(child, node_id)
        if found is not None: return found
    return None


def set_node_value(node, prop, value):
    if isinstance(node, MutableMapping):
        node[prop] = value
    else:
        setattr(node, prop, value)


class BakingPass:
    """
    Writes driven values straight onto per-frame tree snapshots, so the result
    can be exported or played back without the keyframe store.
    """
    @staticmethod
    def bake_frame(snapshot, store, frame_index, find_node=find_node, set_value=set_node_value):
        if not store: return snapshot
        baked = copy.deepcopy(snapshot)
        for prop in store:
            node = find_node(baked, prop.node_id)
            if node is None:
                # Keyframes may outlive the node they animate; nothing to write.
                continue
            set_value(node, prop.property, ValueDriver.drive(prop, frame_index))
        return baked

    @staticmethod
    def bake(snapshots, store, find_node=find_node, set_value=set_node_value):
        if not store: return snapshots
        return [BakingPass.bake_frame(s, store, i, find_node, set_value) for i, s in enumerate(snapshots)]
