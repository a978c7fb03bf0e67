from __future__ import annotations

"""
Tri-State Selection Node.

A node of one folder hierarchy. Owns its children, keeps a lookup-only
reference to its parent and derives its selection from its children:
SELECTED when every child is selected, UNSELECTED when none is, MIXED
otherwise. User toggles cascade down the subtree and bubble back up to the
root as a single update; observers bound to the root hear about it once.
"""

import logging
from typing import Callable, Iterator, List, Optional

from treelink.domain.selection_models import FolderState, SelectionState

logger = logging.getLogger(__name__)

# Change kinds reported to the root observer
CHANGE_SELECTION = "selection"
CHANGE_EXPANSION = "expansion"

NodeObserver = Callable[[str], None]


class SelectionNode:
    """
    Folder node with tri-state selection and an expansion flag.

    Attributes:
        name: Display name (usually the folder's base name).
        path: Absolute path, unique within one tree.
        parent: Parent node, or None for the root.
        children: Ordered child nodes.
    """

    def __init__(
            self,
            name: str,
            path: str,
            parent: Optional[SelectionNode] = None,
            state: SelectionState = SelectionState.SELECTED,
            expanded: bool = True,
    ) -> None:
        self.name = name
        self.path = path
        self.parent = parent
        self.children: List[SelectionNode] = []
        self._state = state
        self._expanded = expanded
        self._observer: Optional[NodeObserver] = None

    # -------------------------------------------------------------------------
    # STRUCTURE
    # -------------------------------------------------------------------------

    def add_child(self, child: SelectionNode) -> SelectionNode:
        """
        Attach a child at the end of the child list.

        Only used while building a tree; the parent's state is not
        recomputed here (see `normalize`).
        """
        child.parent = self
        self.children.append(child)
        return child

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def root(self) -> SelectionNode:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def enumerate_subtree(self) -> Iterator[SelectionNode]:
        """
        Yield this node and every descendant, depth-first, pre-order.

        Each call returns a fresh generator, so the walk can be restarted.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, path: str) -> Optional[SelectionNode]:
        """Return the node of this subtree with the given path, if any."""
        for node in self.enumerate_subtree():
            if node.path == path:
                return node
        return None

    def clone(self) -> SelectionNode:
        """
        Deep-copy this subtree into a detached tree.

        The copy keeps names, paths, states and expansion flags but has no
        parent and no observer.
        """
        copy_root = SelectionNode(self.name, self.path, None, self._state, self._expanded)
        pending = [(self, copy_root)]
        while pending:
            original, copied = pending.pop()
            for child in original.children:
                child_copy = SelectionNode(child.name, child.path, None, child._state, child._expanded)
                copied.add_child(child_copy)
                pending.append((child, child_copy))
        return copy_root

    # -------------------------------------------------------------------------
    # SELECTION
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SelectionState:
        return self._state

    def set_selected(self, target: SelectionState) -> None:
        """
        Toggle this node to `target`.

        Sets every descendant to `target`, then recomputes the ancestors.
        Observers are notified once, after both passes. A root can only be
        driven to SELECTED this way; full deselection goes through its
        children.

        Raises:
            ValueError: If `target` is MIXED, which is always derived.
        """
        target = SelectionState(target)
        if target is SelectionState.MIXED:
            raise ValueError("MIXED is derived from children and cannot be set directly.")

        if self.parent is None and target is not SelectionState.SELECTED:
            logger.debug(f"Ignored direct deselection of root '{self.path}'.")
            return

        if self._state is target:
            return

        for node in self.enumerate_subtree():
            node._state = target
        self._bubble_up()

        self._notify(CHANGE_SELECTION)

    def recompute_from_children(self) -> bool:
        """
        Derive this node's state from its children.

        Leaves keep their own state. Returns True if the state changed.
        """
        if not self.children:
            return False

        if all(c._state is SelectionState.SELECTED for c in self.children):
            new_state = SelectionState.SELECTED
        elif all(c._state is SelectionState.UNSELECTED for c in self.children):
            new_state = SelectionState.UNSELECTED
        else:
            new_state = SelectionState.MIXED

        if new_state is self._state:
            return False
        self._state = new_state
        return True

    def normalize(self) -> None:
        """Recompute every internal node of this subtree, children first."""
        for node in reversed(list(self.enumerate_subtree())):
            node.recompute_from_children()

    def _bubble_up(self) -> None:
        # Stops at the first ancestor whose state is unchanged
        node = self.parent
        while node is not None and node.recompute_from_children():
            node = node.parent

    # -------------------------------------------------------------------------
    # EXPANSION
    # -------------------------------------------------------------------------

    @property
    def expanded(self) -> bool:
        return self._expanded

    def set_expanded(self, value: bool) -> None:
        value = bool(value)
        if self._expanded == value:
            return
        self._expanded = value
        self._notify(CHANGE_EXPANSION)

    def set_expanded_recursive(self, value: bool) -> None:
        """Apply the expansion flag to this node and its whole subtree."""
        value = bool(value)
        changed = False
        for node in self.enumerate_subtree():
            if node._expanded != value:
                node._expanded = value
                changed = True
        if changed:
            self._notify(CHANGE_EXPANSION)

    # -------------------------------------------------------------------------
    # PERSISTENCE SUPPORT
    # -------------------------------------------------------------------------

    def apply_state(self, folder_state: FolderState) -> None:
        """
        Overwrite selection and expansion from a persisted record.

        No cascade and no notification: the caller restores a whole tree
        and normalizes it afterwards. A MIXED record on a leaf is ignored.
        """
        selected = folder_state.selected
        if selected is not None and not (selected is SelectionState.MIXED and not self.children):
            self._state = selected
        self._expanded = folder_state.expanded

    def reset_to(self, state: SelectionState, expanded: bool) -> None:
        """Silently overwrite selection and expansion (restore helper)."""
        self._state = state
        self._expanded = expanded

    def to_folder_state(self) -> FolderState:
        return FolderState(path=self.path, selected=self._state, expanded=self._expanded)

    # -------------------------------------------------------------------------
    # OBSERVATION
    # -------------------------------------------------------------------------

    def bind_observer(self, observer: Optional[NodeObserver]) -> None:
        """
        Attach the change observer of the tree.

        Only the root's observer is consulted; changes anywhere in the tree
        are reported through it.
        """
        self._observer = observer

    def _notify(self, kind: str) -> None:
        observer = self.root._observer
        if observer is not None:
            observer(kind)

    def __repr__(self) -> str:
        return f"SelectionNode({self.path!r}, state={self._state.value}, expanded={self._expanded})"
