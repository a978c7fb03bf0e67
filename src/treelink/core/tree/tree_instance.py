from __future__ import annotations

"""
Tree Instance Manager.

One independently addressable folder tree (one per UI tab or view). Builds
its hierarchy from a TreeSource, restores persisted overlays before the
tree is published, answers selection queries, and exposes three change
notifications:

- structure_changed: the root collection was replaced (observers must
  re-read `roots`).
- selection_changed: some node's tri-state flipped.
- expansion_changed: some node was expanded or collapsed.

While linked, an instance exposes a root collection it shares with its
peers; it then hears the collection's change events like every other
holder.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from treelink.core.events import EventHook
from treelink.core.tree.root_collection import RootCollection
from treelink.core.tree.selection_node import SelectionNode
from treelink.core.tree.tree_source import TreeSource
from treelink.domain.selection_models import (
    BASELINE_EXPANDED,
    BASELINE_STATE,
    FolderState,
    SelectionState,
)

logger = logging.getLogger(__name__)

OverlayInput = Sequence[Union[FolderState, Mapping[str, Any]]]


class TreeInstance:
    """
    Owner of one folder tree and its change notifications.

    Attributes:
        id: Identifier assigned on registration with a LinkCoordinator.
        structure_changed: Hook fired with the instance after the root
            collection is replaced.
        selection_changed: Hook fired with the instance after a toggle.
        expansion_changed: Hook fired with the instance after an
            expansion change.
    """

    def __init__(
            self,
            source: TreeSource,
            instance_id: str = "",
            ignored_names: Iterable[str] = (),
    ) -> None:
        self.id = instance_id
        self._source = source
        self._ignored_names: List[str] = list(ignored_names)
        self._current_path = ""
        self._roots = RootCollection()

        self.structure_changed = EventHook("structure_changed")
        self.selection_changed = EventHook("selection_changed")
        self.expansion_changed = EventHook("expansion_changed")

        self._attach(self._roots)

    # -------------------------------------------------------------------------
    # PROPERTIES
    # -------------------------------------------------------------------------

    @property
    def roots(self) -> RootCollection:
        """The exposed root collection (shared by reference while linked)."""
        return self._roots

    @property
    def root(self) -> Optional[SelectionNode]:
        return self._roots.root

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def ignored_names(self) -> List[str]:
        return list(self._ignored_names)

    def set_ignored_names(self, names: Iterable[str]) -> None:
        """Replace the ignored folder names used by the next build."""
        self._ignored_names = list(names)

    # -------------------------------------------------------------------------
    # LOADING
    # -------------------------------------------------------------------------

    def load(
            self,
            path: Optional[str],
            overlay: Optional[OverlayInput] = None,
            *,
            baseline_expanded: bool = BASELINE_EXPANDED,
    ) -> None:
        """
        (Re)build the tree for `path` and publish it.

        An empty or unresolvable path clears the tree. Loading the path that
        is already loaded without an overlay does nothing. When an overlay is
        given, nodes it names take the recorded values and every other node
        falls back to the persistence baseline; tri-state is then
        recomputed bottom-up before publishing.

        Args:
            path: Directory to load.
            overlay: Optional sparse list of FolderState records (or their
                dict form).
            baseline_expanded: Expansion given to nodes the overlay does not
                name. Legacy save files omitted collapsed folders, so they
                are restored with False.
        """
        resolved = self._source.resolve(path) if path and path.strip() else None
        if resolved is None:
            if path:
                logger.debug(f"Tree '{self.id}': '{path}' cannot be loaded. Clearing.")
            self._clear()
            return

        if resolved == self._current_path and overlay is None:
            return

        root = self._source.build(resolved, self._ignored_names)
        if root is None:
            self._clear()
            return

        if overlay is not None:
            _apply_overlay(root, _coerce_overlay(overlay), baseline_expanded)

        self._current_path = resolved
        self._publish(RootCollection(root))
        logger.debug(f"Tree '{self.id}': Loaded '{resolved}'.")

    def refresh(self) -> None:
        """Rebuild the current path, keeping the current selection and expansion."""
        if not self._current_path:
            return
        self.load(self._current_path, self.extract_state())

    def adopt_shared(self, collection: RootCollection, path: str) -> None:
        """
        Expose a collection owned by another instance.

        Used by the link coordinator; fires structure_changed.
        """
        self._current_path = path
        self._publish(collection)

    def unlink_and_clone(self) -> None:
        """
        Replace the exposed collection with a detached deep copy of itself.

        Later changes on either side no longer affect the other.
        """
        root = self._roots.root
        self._publish(RootCollection(root.clone() if root is not None else None))

    def _clear(self) -> None:
        if not self._current_path and self._roots.is_empty:
            return
        self._current_path = ""
        self._publish(RootCollection())

    def _publish(self, collection: RootCollection) -> None:
        self._detach(self._roots)
        self._roots = collection
        self._attach(collection)
        self.structure_changed.emit(self)

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def extract_state(self) -> List[FolderState]:
        """
        Return the sparse overlay of the current tree.

        Only nodes whose (state, expanded) pair differs from the baseline
        (UNSELECTED, expanded) are listed, in pre-order.
        """
        return [
            node.to_folder_state()
            for node in self._roots.enumerate_nodes()
            if node.state is not BASELINE_STATE or node.expanded != BASELINE_EXPANDED
        ]

    def selected_node_count(self) -> int:
        """Count nodes that are SELECTED or MIXED."""
        return sum(1 for n in self._roots.enumerate_nodes() if n.state is not SelectionState.UNSELECTED)

    def selected_paths(self) -> List[str]:
        """Paths of fully selected nodes, in pre-order."""
        return [n.path for n in self._roots.enumerate_nodes() if n.state is SelectionState.SELECTED]

    def selection_scopes(self) -> List[Tuple[str, bool]]:
        """
        Describe the selection as (path, recursive) folder scopes.

        A SELECTED folder contributes its whole subtree and is not descended
        into; a MIXED folder contributes only its own entries and its
        children are examined in turn.
        """
        scopes: List[Tuple[str, bool]] = []
        pending = list(reversed(list(self._roots)))
        while pending:
            node = pending.pop()
            if node.state is SelectionState.SELECTED:
                scopes.append((node.path, True))
            elif node.state is SelectionState.MIXED:
                scopes.append((node.path, False))
                pending.extend(reversed(node.children))
        return scopes

    def find(self, path: str) -> Optional[SelectionNode]:
        return self._roots.find(path)

    # -------------------------------------------------------------------------
    # COLLECTION WIRING
    # -------------------------------------------------------------------------

    def _attach(self, collection: RootCollection) -> None:
        collection.selection_changed.subscribe(self._on_selection_changed)
        collection.expansion_changed.subscribe(self._on_expansion_changed)

    def _detach(self, collection: RootCollection) -> None:
        collection.selection_changed.unsubscribe(self._on_selection_changed)
        collection.expansion_changed.unsubscribe(self._on_expansion_changed)

    def _on_selection_changed(self) -> None:
        self.selection_changed.emit(self)

    def _on_expansion_changed(self) -> None:
        self.expansion_changed.emit(self)

    def __repr__(self) -> str:
        return f"TreeInstance(id={self.id!r}, path={self._current_path!r})"


# -----------------------------------------------------------------------------
# OVERLAY HELPERS
# -----------------------------------------------------------------------------

def _coerce_overlay(overlay: OverlayInput) -> List[FolderState]:
    return [s if isinstance(s, FolderState) else FolderState.from_dict(dict(s)) for s in overlay]


def _apply_overlay(
        root: SelectionNode,
        overlay: List[FolderState],
        baseline_expanded: bool = BASELINE_EXPANDED,
) -> None:
    """Restore recorded nodes, reset the rest to the baseline, then normalize."""
    by_path = {s.path: s for s in overlay}
    for node in root.enumerate_subtree():
        record = by_path.get(node.path)
        if record is not None:
            node.apply_state(record)
        else:
            node.reset_to(BASELINE_STATE, baseline_expanded)
    root.normalize()
