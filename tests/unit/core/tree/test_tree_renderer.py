from __future__ import annotations

"""
Unit tests for the ASCII selection tree renderer.
"""

from treelink.core.tree.selection_node import SelectionNode
from treelink.core.tree.tree_renderer import render_selection_tree
from treelink.domain.selection_models import SelectionState


def build_tree() -> SelectionNode:
    root = SelectionNode("proj", "/proj")
    src = root.add_child(SelectionNode("src", "/proj/src"))
    src.add_child(SelectionNode("app", "/proj/src/app"))
    src.add_child(SelectionNode("lib", "/proj/src/lib"))
    root.add_child(SelectionNode("docs", "/proj/docs"))
    return root


def test_render_markers_and_connectors() -> None:
    root = build_tree()
    root.find("/proj/src/lib").set_selected(SelectionState.UNSELECTED)

    assert render_selection_tree(root) == [
        "[~] proj",
        "├── [~] src",
        "│   ├── [x] app",
        "│   └── [ ] lib",
        "└── [x] docs",
    ]


def test_collapsed_folder_hides_children() -> None:
    root = build_tree()
    root.find("/proj/src").set_expanded(False)

    assert render_selection_tree(root) == [
        "[x] proj",
        "├── [x] src (+)",
        "└── [x] docs",
    ]
    assert len(render_selection_tree(root, expand_all=True)) == 5


def test_render_empty_tree() -> None:
    assert render_selection_tree(None) == []
