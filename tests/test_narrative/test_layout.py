from narrative.layout import NodePosition, auto_layout_nodes, layout_levels
from narrative.models import DialogTree

def test_levels_follow_breadth_first_order(tree_data):
    tree = DialogTree.model_validate(tree_data)
    assert layout_levels(tree) == [["welcome"], ["academy", "wilderness"]]

def test_orphans_get_their_own_column(tree_data):
    tree_data["nodes"]["stray"] = {"id": "stray", "message": "Lost", "responses": []}
    tree = DialogTree.model_validate(tree_data)

    assert layout_levels(tree)[-1] == ["stray"]

def test_positions(tree_data):
    positions = auto_layout_nodes(DialogTree.model_validate(tree_data))

    assert positions == {
        "welcome": NodePosition(0, -75),
        "academy": NodePosition(300, -150),
        "wilderness": NodePosition(300, 0),
    }

def test_custom_spacing(tree_data):
    positions = auto_layout_nodes(DialogTree.model_validate(tree_data), level_spacing=100, node_spacing=50)
    assert positions["wilderness"] == NodePosition(100, 0)
    assert positions["academy"] == NodePosition(100, -50)

def test_missing_start_puts_everything_in_one_column(tree_data):
    tree_data["startNodeId"] = "nowhere"
    tree = DialogTree.model_validate(tree_data)

    assert layout_levels(tree) == [["welcome", "academy", "wilderness"]]
