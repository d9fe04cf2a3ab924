from layout import build_scene, layout_tree
from layout.scene import PALETTE
from payload import TreeData, parse_structure


def test_single_row_one_colour():
    scene = layout_tree(TreeData((8, 3, 10, 1)), 2)
    nodes = scene.find("tree-node")
    assert len(nodes) == 4
    assert len({n.cy for n in nodes}) == 1
    assert {n.fill for n in nodes} == {PALETTE.tree_fill}
    assert [t.text for t in scene.find("tree-label")] == ["8", "3", "10", "1"]


def test_step_does_not_change_tree():
    a = layout_tree(TreeData((1, 2, 3)), 0)
    b = layout_tree(TreeData((1, 2, 3)), 2)
    assert a == b


def test_empty_tree_is_empty_scene():
    assert build_scene(parse_structure({"type": "tree", "data": []}), 0).is_empty
