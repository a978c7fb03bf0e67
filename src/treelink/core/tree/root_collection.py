from __future__ import annotations

"""
Shared Root Collection.

The handle through which tree instances expose their folder hierarchy.
Linked instances hold the very same collection object, so a toggle made
through any of them is visible through all of them, and every holder hears
the collection's change events.
"""

from typing import Iterator, List, Optional

from treelink.core.events import EventHook
from treelink.core.tree.selection_node import CHANGE_EXPANSION, CHANGE_SELECTION, SelectionNode


class RootCollection:
    """
    Zero-or-one root nodes plus the change hooks of that tree.

    Attributes:
        selection_changed: Fired once per effective selection toggle.
        expansion_changed: Fired once per effective expansion change.
    """

    def __init__(self, root: Optional[SelectionNode] = None) -> None:
        self._roots: List[SelectionNode] = []
        self.selection_changed = EventHook("selection_changed")
        self.expansion_changed = EventHook("expansion_changed")
        if root is not None:
            root.bind_observer(self._on_node_changed)
            self._roots.append(root)

    @property
    def root(self) -> Optional[SelectionNode]:
        return self._roots[0] if self._roots else None

    @property
    def is_empty(self) -> bool:
        return not self._roots

    def enumerate_nodes(self) -> Iterator[SelectionNode]:
        """Pre-order walk over every node of the collection."""
        for root in self._roots:
            yield from root.enumerate_subtree()

    def find(self, path: str) -> Optional[SelectionNode]:
        for root in self._roots:
            node = root.find(path)
            if node is not None:
                return node
        return None

    def _on_node_changed(self, kind: str) -> None:
        if kind == CHANGE_SELECTION:
            self.selection_changed.emit()
        elif kind == CHANGE_EXPANSION:
            self.expansion_changed.emit()

    def __iter__(self) -> Iterator[SelectionNode]:
        return iter(list(self._roots))

    def __len__(self) -> int:
        return len(self._roots)

    def __repr__(self) -> str:
        root = self.root
        return f"RootCollection({root.path!r})" if root is not None else "RootCollection(<empty>)"
