from __future__ import annotations

"""
Workspace Orchestrator.

Wires the tree instances of one application window to a shared tree
source, a link coordinator and a session history. Converts the live trees
to and from session dictionaries so they can be persisted, stored in
presets, or restored by undo/redo.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from treelink.core.link.link_coordinator import LinkCoordinator, UnregisteredTreeError
from treelink.core.services.history import History
from treelink.core.services.validator import normalize_folder_names, validate_session
from treelink.core.tree.tree_instance import TreeInstance
from treelink.core.tree.tree_source import FileSystemTreeSource, TreeSource
from treelink.domain import session as session_store
from treelink.domain.constants import (
    CURRENT_SESSION_VERSION,
    DEFAULT_IGNORED_FOLDERS,
    DEFAULT_TREE_IDS,
)
from treelink.domain.selection_models import overlay_to_json

logger = logging.getLogger(__name__)


class Workspace:
    """
    Set of named trees sharing one source path and one link coordinator.

    Args:
        source: Tree source used by every tree (filesystem by default).
        tree_ids: Trees created up front.
        ignored_folders: Folder names skipped when building trees.
        history: Undo/redo store.
    """

    def __init__(
            self,
            source: Optional[TreeSource] = None,
            tree_ids: Iterable[str] = DEFAULT_TREE_IDS,
            ignored_folders: Iterable[str] = DEFAULT_IGNORED_FOLDERS,
            history: Optional[History] = None,
    ) -> None:
        self._source = source or FileSystemTreeSource()
        self._coordinator = LinkCoordinator()
        self._history = history or History()
        self._trees: Dict[str, TreeInstance] = {}
        self._source_path = ""
        self._preset_name = ""
        self._ignored_folders = normalize_folder_names(ignored_folders)

        for tree_id in tree_ids:
            self.add_tree(tree_id)

    # -------------------------------------------------------------------------
    # TREES
    # -------------------------------------------------------------------------

    @property
    def coordinator(self) -> LinkCoordinator:
        return self._coordinator

    @property
    def history(self) -> History:
        return self._history

    @property
    def source_path(self) -> str:
        return self._source_path

    @property
    def ignored_folders(self) -> List[str]:
        return list(self._ignored_folders)

    @property
    def tree_ids(self) -> List[str]:
        return list(self._trees)

    def add_tree(self, tree_id: str) -> TreeInstance:
        """Create, register and return a tree; an existing id is replaced."""
        tree = TreeInstance(self._source, tree_id, self._ignored_folders)
        self._trees[tree_id] = tree
        self._coordinator.register(tree_id, tree)
        return tree

    def tree(self, tree_id: str) -> TreeInstance:
        """
        Raises:
            UnregisteredTreeError: If the workspace has no such tree.
        """
        try:
            return self._trees[tree_id]
        except KeyError:
            raise UnregisteredTreeError(tree_id) from None

    # -------------------------------------------------------------------------
    # LOADING
    # -------------------------------------------------------------------------

    def load_all(self, path: Optional[str]) -> None:
        """Point every tree at `path` (an empty path clears them)."""
        self._source_path = (path or "").strip()
        for tree in self._trees.values():
            tree.load(self._source_path)
        logger.info(f"Workspace: Source set to '{self._source_path}'.")

    def clear_all(self) -> None:
        self.load_all("")

    def refresh_all(self) -> None:
        """Rebuild every tree from disk, once per link group."""
        refreshed: Set[str] = set()
        for tree_id, tree in self._trees.items():
            leader = self._coordinator.get_leader(tree_id) or tree_id
            if leader in refreshed:
                continue
            refreshed.add(leader)
            tree.refresh()

    def set_ignored_folders(self, names: Iterable[str]) -> None:
        """Change the ignored folder names and rebuild the trees."""
        self._ignored_folders = normalize_folder_names(names)
        for tree in self._trees.values():
            tree.set_ignored_names(self._ignored_folders)
        self.refresh_all()

    def copy_tree_state(self, source_id: str, dest_id: str) -> None:
        """
        Give `dest_id` the selection and expansion of `source_id`.

        The destination is rebuilt from disk with the source's overlay. The
        previous session is recorded first so the copy can be undone.
        """
        source = self.tree(source_id)
        dest = self.tree(dest_id)
        if source is dest:
            return
        self.record_snapshot()
        path = source.current_path or self._source_path
        dest.load(path, source.extract_state())
        logger.info(f"Workspace: Copied tree state from '{source_id}' to '{dest_id}'.")

    # -------------------------------------------------------------------------
    # SESSION SNAPSHOTS
    # -------------------------------------------------------------------------

    def capture(self) -> Dict[str, Any]:
        """Return the current session as a JSON-compatible dictionary."""
        return {
            "version": CURRENT_SESSION_VERSION,
            "preset_name": self._preset_name,
            "source_path": self._source_path,
            "ignored_folders": list(self._ignored_folders),
            "tree_states": {
                tree_id: overlay_to_json(tree.extract_state())
                for tree_id, tree in self._trees.items()
                if tree.current_path
            },
            "link_groups": self._coordinator.get_link_groups(),
            "collapsed_baseline": [],
        }

    def apply(self, session: Any) -> List[str]:
        """
        Restore a session dictionary.

        Links are dropped first so that restoring one tree cannot overwrite
        its peers; every tree is then loaded with its own overlay and the
        saved link groups are re-established from their leaders.

        Returns:
            List[str]: Validation warnings.
        """
        clean, warnings = validate_session(session)
        for w in warnings:
            logger.warning(f"Session constraint: {w}")

        self._preset_name = clean["preset_name"]
        self._source_path = clean["source_path"]
        self._ignored_folders = clean["ignored_folders"]

        self._coordinator.load_groups([])

        tree_states = clean["tree_states"]
        collapsed = set(clean["collapsed_baseline"])
        for tree_id, tree in self._trees.items():
            tree.set_ignored_names(self._ignored_folders)
            tree.load(self._source_path, tree_states.get(tree_id),
                      baseline_expanded=tree_id not in collapsed)

        unknown = sorted(set(tree_states) - set(self._trees))
        if unknown:
            logger.debug(f"Workspace: Ignored state for unknown trees {unknown}.")

        known_groups = [[m for m in group if m in self._trees] for group in clean["link_groups"]]
        self._coordinator.load_groups(known_groups)
        return warnings

    def record_snapshot(self) -> None:
        """Store the current session so the next change can be undone."""
        self._history.record(self.capture())

    def undo(self) -> bool:
        if not self._history.can_undo:
            return False
        self.apply(self._history.undo(self.capture()))
        return True

    def redo(self) -> bool:
        if not self._history.can_redo:
            return False
        self.apply(self._history.redo(self.capture()))
        return True

    # -------------------------------------------------------------------------
    # PERSISTENCE
    # -------------------------------------------------------------------------

    def save(self, path: Optional[str] = None) -> bool:
        return session_store.save_session_state(self.capture(), path)

    def restore_saved(self, path: Optional[str] = None) -> List[str]:
        """Apply the stored session and start a fresh history."""
        warnings = self.apply(session_store.load_session_state(path))
        self._history.clear()
        return warnings

    def save_preset(self, slot: int, name: str) -> None:
        """
        Raises:
            OSError: If the preset file cannot be written.
            ValueError: On an invalid slot.
        """
        self._preset_name = name.strip()
        session_store.save_preset(self.capture(), slot)

    def load_preset(self, slot: int) -> bool:
        """Apply a preset slot; returns False if the slot is empty."""
        preset = session_store.load_preset(slot)
        if preset is None:
            return False
        self.record_snapshot()
        self.apply(preset)
        return True
