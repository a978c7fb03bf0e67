from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. An in-memory TreeSource so tree tests do not touch the disk.
3. Shared directory layouts (in memory and on disk).
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from treelink.core.tree.selection_node import SelectionNode  # noqa: E402


# -----------------------------------------------------------------------------
# In-memory TreeSource
# -----------------------------------------------------------------------------
class FakeTreeSource:
    """
    TreeSource backed by nested dictionaries.

    `layouts` maps a root path to a {child name: sub-layout} dictionary.
    Paths are joined with '/'. Every build returns brand-new nodes and is
    counted in `builds`.
    """

    def __init__(self, layouts: Dict[str, Dict[str, Any]]) -> None:
        self.layouts = layouts
        self.builds: List[str] = []

    def resolve(self, root_path: str) -> Optional[str]:
        path = (root_path or "").strip()
        return path if path in self.layouts else None

    def build(self, root_path: str, ignored_names: Iterable[str] = ()) -> Optional[SelectionNode]:
        resolved = self.resolve(root_path)
        if resolved is None:
            return None
        self.builds.append(resolved)
        ignored = {n.casefold() for n in ignored_names}
        name = resolved.rstrip("/").rsplit("/", 1)[-1] or resolved
        root = SelectionNode(name, resolved)
        self._add_children(root, self.layouts[resolved], ignored)
        return root

    def _add_children(self, parent: SelectionNode, layout: Dict[str, Any], ignored: set) -> None:
        for child_name, sub_layout in layout.items():
            if child_name.casefold() in ignored:
                continue
            child = parent.add_child(SelectionNode(child_name, f"{parent.path}/{child_name}"))
            self._add_children(child, sub_layout, ignored)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def proj_layouts() -> Dict[str, Dict[str, Any]]:
    """
    Two roots:

    /proj
    ├── docs
    └── src
        ├── app
        └── lib

    /other
    └── data
    """
    return {
        "/proj": {"docs": {}, "src": {"app": {}, "lib": {}}},
        "/other": {"data": {}},
    }


@pytest.fixture
def fake_source(proj_layouts: Dict[str, Dict[str, Any]]) -> FakeTreeSource:
    return FakeTreeSource(proj_layouts)


@pytest.fixture
def disk_tree(tmp_path: Path) -> Path:
    """
    Real directory layout:

    project/
    ├── .git/objects/
    ├── docs/
    ├── node_modules/pkg/
    ├── src/app/
    ├── src/lib/
    └── README.md
    """
    root = tmp_path / "project"
    for rel in (".git/objects", "docs", "node_modules/pkg", "src/app", "src/lib"):
        (root / rel).mkdir(parents=True)
    (root / "README.md").write_text("# project\n", encoding="utf-8")
    return root


@pytest.fixture
def make_source():
    """Factory for a FakeTreeSource over custom layouts."""
    return FakeTreeSource
