from __future__ import annotations

"""
Tree Renderer.

Converts a SelectionNode hierarchy into ASCII lines with a selection marker
per folder. Collapsed folders hide their children unless expansion is
forced.
"""

from typing import Dict, List, Optional

from treelink.core.tree.selection_node import SelectionNode
from treelink.domain.selection_models import SelectionState

MARKERS: Dict[SelectionState, str] = {
    SelectionState.SELECTED: "[x]",
    SelectionState.UNSELECTED: "[ ]",
    SelectionState.MIXED: "[~]",
}

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_selection_tree(root: Optional[SelectionNode], expand_all: bool = False) -> List[str]:
    """
    Render the tree below `root` using standard connectors (├──, └──).

    Args:
        root: Tree to render; None renders nothing.
        expand_all: Show children of collapsed folders too.

    Returns:
        List[str]: One line per visible folder. Collapsed folders with
        hidden children carry a trailing '(+)'.
    """
    if root is None:
        return []

    lines = [_format_entry(root, expand_all)]
    if root.expanded or expand_all:
        _render_children(root, lines, "", expand_all)
    return lines


def _render_children(node: SelectionNode, lines: List[str], prefix: str, expand_all: bool) -> None:
    total = len(node.children)
    for i, child in enumerate(node.children):
        is_last = (i == total - 1)
        connector = "└── " if is_last else "├── "
        lines.append(f"{prefix}{connector}{_format_entry(child, expand_all)}")

        if child.children and (child.expanded or expand_all):
            new_prefix = prefix + ("    " if is_last else "│   ")
            _render_children(child, lines, new_prefix, expand_all)


def _format_entry(node: SelectionNode, expand_all: bool) -> str:
    text = f"{MARKERS[node.state]} {node.name}"
    if node.children and not node.expanded and not expand_all:
        text += " (+)"
    return text
