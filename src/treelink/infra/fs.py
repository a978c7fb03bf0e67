from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Cross-platform resolution of the application data directory and of the
folder paths handed to tree instances.
"""

import os
from typing import Optional

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "TreeLink"
UNIX_APP_DIR_NAME = ".treelink"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the OS-specific directory for persistent application data.

    - Windows: %LOCALAPPDATA%/TreeLink
    - Linux/Mac: ~/.treelink

    The directory is created on first use.

    Returns:
        str: Absolute path to the application data directory.
    """
    path = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str]) -> str:
    """
    Expand user and environment shortcuts and make a path absolute.

    Args:
        path: Raw path string; None and blank strings yield "".

    Returns:
        str: Absolute path, or "" for empty input.
    """
    p = (path or "").strip()
    if not p:
        return ""
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))


def resolve_directory(path: Optional[str]) -> Optional[str]:
    """
    Normalize `path` and confirm it names an existing directory.

    Returns:
        Optional[str]: The absolute directory path, or None.
    """
    p = normalize_path(path)
    if not p or not os.path.isdir(p):
        return None
    return p
