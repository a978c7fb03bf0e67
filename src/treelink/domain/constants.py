from __future__ import annotations

"""
Domain Constants.

Centralizes the identifiers and limits shared by the tree engine, the
session store and the command line interface.
"""

from typing import List

CURRENT_SESSION_VERSION = "1.1.0"

# Default tree surfaces of a workspace (one per export view)
DEFAULT_TREE_IDS: List[str] = ["file_content", "folder_content", "tree_generator"]

DEFAULT_IGNORED_FOLDERS: List[str] = [
    ".git",
    ".idea",
    ".vs",
    ".vscode",
    "__pycache__",
    "bin",
    "node_modules",
    "obj",
]

MAX_HISTORY_SIZE = 10
PRESET_SLOTS = 5
