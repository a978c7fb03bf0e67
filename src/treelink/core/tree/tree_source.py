from __future__ import annotations

"""
Folder Tree Sources.

Builds fresh SelectionNode hierarchies for tree instances. The filesystem
source enumerates directories only, skips ignored names (case-insensitive)
and silently drops subtrees it is not allowed to read.
"""

import logging
import os
from typing import Iterable, List, Optional, Protocol, Set, Tuple

from treelink.core.tree.selection_node import SelectionNode
from treelink.infra.fs import resolve_directory

logger = logging.getLogger(__name__)


class TreeSource(Protocol):
    """Interface expected by TreeInstance."""

    def resolve(self, root_path: str) -> Optional[str]:
        """Return the canonical form of `root_path`, or None if it cannot be loaded."""
        ...

    def build(self, root_path: str, ignored_names: Iterable[str]) -> Optional[SelectionNode]:
        """Return a fresh SELECTED + expanded tree rooted at `root_path`, or None."""
        ...


class FileSystemTreeSource:
    """
    Directory-only tree source backed by `os.scandir`.

    Symbolic links to directories are not followed, which keeps the walk
    finite on trees containing link cycles.
    """

    def resolve(self, root_path: str) -> Optional[str]:
        return resolve_directory(root_path)

    def build(self, root_path: str, ignored_names: Iterable[str] = ()) -> Optional[SelectionNode]:
        """
        Enumerate `root_path` recursively into a SelectionNode tree.

        Args:
            root_path: Directory to load.
            ignored_names: Folder names to skip at any depth.

        Returns:
            Optional[SelectionNode]: The root node, or None if the directory
            does not exist or is not accessible.
        """
        resolved = self.resolve(root_path)
        if resolved is None:
            logger.debug(f"TreeSource: '{root_path}' is not a readable directory.")
            return None

        ignored = _fold_names(ignored_names)
        root = SelectionNode(_display_name(resolved), resolved)

        skipped = 0
        pending: List[SelectionNode] = [root]
        while pending:
            parent = pending.pop()
            entries, ok = _list_subdirectories(parent.path, ignored)
            if not ok:
                skipped += 1
                continue
            for name, full_path in entries:
                child = parent.add_child(SelectionNode(name, full_path))
                pending.append(child)

        if skipped:
            logger.debug(f"TreeSource: Skipped {skipped} unreadable folder(s) under '{resolved}'.")
        return root


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _fold_names(names: Iterable[str]) -> Set[str]:
    return {n.strip().casefold() for n in names if n and n.strip()}


def _display_name(path: str) -> str:
    name = os.path.basename(path.rstrip("\\/"))
    return name or path


def _list_subdirectories(path: str, ignored: Set[str]) -> Tuple[List[Tuple[str, str]], bool]:
    """
    List the visible subdirectories of `path`, sorted by name.

    Returns:
        Tuple[List[Tuple[str, str]], bool]: (name, full path) pairs and a
        flag that is False when the directory could not be enumerated.
    """
    found: List[Tuple[str, str]] = []
    try:
        with os.scandir(path) as it:
            for entry in it:
                if entry.name.casefold() in ignored:
                    continue
                try:
                    if not entry.is_dir(follow_symlinks=False):
                        continue
                except OSError:
                    continue
                found.append((entry.name, entry.path))
    except OSError as e:
        logger.debug(f"TreeSource: Cannot enumerate '{path}': {e}")
        return [], False

    found.sort(key=lambda item: item[0].casefold())
    return found, True
