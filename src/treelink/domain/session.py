from __future__ import annotations

"""
Session State Persistence.

Stores the workspace session (source path, ignored folders, per-tree
selection overlays and link groups) as JSON in the user data directory,
plus numbered preset slots. Reading never fails: missing files yield the
defaults and corrupt files are logged and replaced by them.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from treelink.domain.constants import (
    CURRENT_SESSION_VERSION,
    DEFAULT_IGNORED_FOLDERS,
    PRESET_SLOTS,
)
from treelink.domain.migrations import run_migrations
from treelink.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
SESSION_FILE_NAME = "session.json"
PRESET_FILE_TEMPLATE = "session_preset_{:02d}.json"


def get_session_file() -> str:
    return os.path.join(get_user_data_dir(), SESSION_FILE_NAME)


def get_preset_file(slot: int) -> str:
    """
    Resolve the file of a preset slot.

    Raises:
        ValueError: If the slot is outside 1..PRESET_SLOTS.
    """
    if not isinstance(slot, int) or not 1 <= slot <= PRESET_SLOTS:
        raise ValueError(f"Preset slot must be between 1 and {PRESET_SLOTS}, got {slot!r}.")
    return os.path.join(get_user_data_dir(), PRESET_FILE_TEMPLATE.format(slot))


def get_default_session() -> Dict[str, Any]:
    """
    Generate an empty session.

    `tree_states` maps tree ids to overlay lists; a tree without an entry
    has no recorded state and loads fully selected.
    `collapsed_baseline` lists trees whose overlays leave collapsed
    unselected folders out (converted legacy saves).
    """
    return {
        "version": CURRENT_SESSION_VERSION,
        "preset_name": "",
        "source_path": "",
        "ignored_folders": list(DEFAULT_IGNORED_FOLDERS),
        "tree_states": {},
        "link_groups": [],
        "collapsed_baseline": [],
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_session_state(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load a session from disk, migrating legacy layouts.

    Args:
        path: Session file; defaults to the user data directory's session.json.

    Returns:
        Dict[str, Any]: The stored session merged over the defaults.
    """
    target = path or get_session_file()
    data = _read_json(target)
    if data is None:
        return get_default_session()
    return _merge_with_defaults(data)


def save_session_state(state: Dict[str, Any], path: Optional[str] = None) -> bool:
    """
    Persist a session to disk.

    Write failures are logged, not raised.

    Returns:
        bool: True if the file was written.
    """
    target = path or get_session_file()
    try:
        _write_json(target, state)
        logger.debug(f"Session saved to {target}")
        return True
    except OSError as e:
        logger.error(f"Failed to save session to '{target}': {e}")
        return False


# -----------------------------------------------------------------------------
# Presets
# -----------------------------------------------------------------------------
def save_preset(state: Dict[str, Any], slot: int) -> None:
    """
    Store a session in a preset slot.

    Raises:
        OSError: If the preset cannot be written (after logging it).
        ValueError: On an invalid slot.
    """
    target = get_preset_file(slot)
    try:
        _write_json(target, state)
        logger.info(f"Preset {slot} saved ('{state.get('preset_name', '')}').")
    except OSError as e:
        logger.error(f"Failed to save preset {slot}: {e}")
        raise


def load_preset(slot: int) -> Optional[Dict[str, Any]]:
    """
    Read a preset slot.

    Returns:
        Optional[Dict[str, Any]]: None for an empty slot; the defaults if the
        preset file is unreadable.
    """
    target = get_preset_file(slot)
    if not os.path.exists(target):
        return None
    data = _read_json(target)
    if data is None:
        return get_default_session()
    return _merge_with_defaults(data)


def preset_exists(slot: int) -> bool:
    return os.path.exists(get_preset_file(slot))


def get_preset_name(slot: int) -> str:
    preset = load_preset(slot)
    return str(preset.get("preset_name", "")) if preset else ""


# -----------------------------------------------------------------------------
# Private Helpers
# -----------------------------------------------------------------------------
def _read_json(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        logger.debug(f"Session file not found at {path}. Using defaults.")
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Unreadable session file '{path}': {e}. Using defaults.")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Corrupted session file '{path}'. Using defaults.")
        return None
    return data


def _write_json(path: str, state: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    payload = dict(state)
    payload["version"] = CURRENT_SESSION_VERSION
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=4)


def _merge_with_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    state = get_default_session()
    migrated = run_migrations(data)
    for key in state:
        if key in migrated:
            state[key] = migrated[key]
    state["version"] = CURRENT_SESSION_VERSION
    return state
