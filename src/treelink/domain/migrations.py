from __future__ import annotations

import logging
from typing import Any, Dict, List

from treelink.domain.constants import DEFAULT_TREE_IDS

logger = logging.getLogger(__name__)

# Sections of the legacy desktop save file, mapped to workspace tree ids
_LEGACY_SECTIONS: Dict[str, str] = {
    "FileContentExport": "file_content",
    "FolderContentExport": "folder_content",
    "TreeGenerator": "tree_generator",
}


def run_migrations(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a raw session dictionary up to the current schema.

    Applied in order:
    1. Legacy desktop save files (PascalCase sections with FullPath /
       IsSelected / IsExpanded records) become a session.
    2. A single top-level `folder_tree_state` overlay is copied to every
       default tree.
    3. Boolean `selected` values become state names.

    Args:
        data: The raw dictionary loaded from disk.

    Returns:
        Dict[str, Any]: The migrated dictionary (a new object when the
        layout changed).
    """
    if "SourcePath" in data or any(section in data for section in _LEGACY_SECTIONS):
        logger.info("Migrations: Detected legacy desktop save file. Converting...")
        data = _migrate_legacy_save_data(data)

    if "folder_tree_state" in data:
        logger.info("Migrations: Spreading flat folder_tree_state to every tree.")
        data = dict(data)
        flat = data.pop("folder_tree_state") or []
        tree_states = dict(data.get("tree_states") or {})
        for tree_id in DEFAULT_TREE_IDS:
            tree_states.setdefault(tree_id, list(flat))
        data["tree_states"] = tree_states

    _migrate_boolean_selection(data)
    return data


def _migrate_legacy_save_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert the legacy desktop layout.

    A null IsSelected there meant mixed. Only selected, mixed or expanded
    folders were written, so an absent folder was unselected and collapsed.
    """
    settings = data.get("SettingsPage") or {}
    migrated: Dict[str, Any] = {
        "preset_name": data.get("PresetName", ""),
        "source_path": data.get("SourcePath", ""),
        "tree_states": {},
        "collapsed_baseline": [],
    }
    if isinstance(settings, dict) and "IgnoredFolders" in settings:
        migrated["ignored_folders"] = settings.get("IgnoredFolders") or []

    for section, tree_id in _LEGACY_SECTIONS.items():
        block = data.get(section)
        if not isinstance(block, dict):
            continue
        records: List[Dict[str, Any]] = []
        for item in block.get("FolderTreeState") or []:
            if not isinstance(item, dict):
                continue
            selected = item.get("IsSelected")
            records.append({
                "path": item.get("FullPath", ""),
                "selected": "mixed" if selected is None else selected,
                "expanded": bool(item.get("IsExpanded", False)),
            })
        migrated["tree_states"][tree_id] = records
        migrated["collapsed_baseline"].append(tree_id)

    return migrated


def _migrate_boolean_selection(data: Dict[str, Any]) -> None:
    tree_states = data.get("tree_states")
    if not isinstance(tree_states, dict):
        return

    converted = 0
    for records in tree_states.values():
        if not isinstance(records, list):
            continue
        for record in records:
            if isinstance(record, dict) and isinstance(record.get("selected"), bool):
                record["selected"] = "selected" if record["selected"] else "unselected"
                converted += 1

    if converted:
        logger.info(f"Migrations: Converted {converted} boolean selection value(s).")
