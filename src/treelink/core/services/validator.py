from __future__ import annotations

"""
Session Validation Service.

Gatekeeper between persisted (untrusted) session dictionaries and the
workspace. Coerces every field into its expected type, drops malformed
overlay records and link groups, and reports what it changed.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple

from treelink.domain.selection_models import FolderState
from treelink.domain.session import get_default_session

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_session(
        session: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a session dictionary.

    Args:
        session: Raw session data (usually a dictionary read from JSON).
        strict: If True, raise on the first invalid value instead of
                discarding it.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized session and the
                                          list of warnings.

    Raises:
        TypeError: In strict mode, on a value of the wrong type.
        ValueError: In strict mode, on a malformed overlay record.
    """
    warnings: List[str] = []
    defaults = get_default_session()

    if not isinstance(session, dict):
        msg = f"Invalid session type: expected dict, received {type(session).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(session)

    for field in ("version", "preset_name", "source_path"):
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    merged["ignored_folders"] = normalize_folder_names(
        _as_list_str(merged.get("ignored_folders"), defaults["ignored_folders"],
                     "ignored_folders", warnings, strict)
    )
    merged["tree_states"] = _as_tree_states(merged.get("tree_states"), warnings, strict)
    merged["link_groups"] = _as_link_groups(merged.get("link_groups"), warnings, strict)
    merged["collapsed_baseline"] = _as_list_str(merged.get("collapsed_baseline"), [],
                                                "collapsed_baseline", warnings, strict)

    for w in warnings:
        logger.debug(f"Session validation: {w}")
    return merged, warnings


def normalize_folder_names(names: Iterable[str]) -> List[str]:
    """
    Trim, de-duplicate (case-insensitively, first spelling wins) and sort
    folder names.
    """
    seen: Dict[str, str] = {}
    for name in names:
        clean = name.strip()
        if clean and clean.casefold() not in seen:
            seen[clean.casefold()] = clean
    return sorted(seen.values(), key=str.casefold)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip()

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_list_str(value: Any, fallback: List[str], field: str, warnings: List[str], strict: bool) -> List[str]:
    if value is None:
        return list(fallback)

    # CSV strings are accepted for hand-edited files
    if isinstance(value, str) and not strict:
        warnings.append(f"Field '{field}' converted from CSV string to list.")
        return [x.strip() for x in value.split(",") if x.strip()]

    if isinstance(value, list):
        out: List[str] = []
        for i, item in enumerate(value):
            if isinstance(item, str):
                out.append(item)
                continue
            msg = f"Invalid item in '{field}[{i}]': expected str."
            if strict:
                raise TypeError(msg)
            warnings.append(f"{msg} Item discarded.")
        return out

    msg = f"Invalid field '{field}': expected list[str], received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return list(fallback)


def _as_tree_states(value: Any, warnings: List[str], strict: bool) -> Dict[str, List[Dict[str, Any]]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Invalid field 'tree_states': expected dict, received {type(value).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Discarded.")
        return {}

    out: Dict[str, List[Dict[str, Any]]] = {}
    for tree_id, records in value.items():
        if not isinstance(records, list):
            msg = f"Invalid overlay for tree '{tree_id}': expected list."
            if strict:
                raise TypeError(msg)
            warnings.append(f"{msg} Discarded.")
            continue

        clean: List[Dict[str, Any]] = []
        for i, record in enumerate(records):
            try:
                clean.append(FolderState.from_dict(record).to_dict())
            except ValueError as e:
                if strict:
                    raise
                warnings.append(f"Invalid record tree_states['{tree_id}'][{i}]: {e} Discarded.")
        out[str(tree_id)] = clean
    return out


def _as_link_groups(value: Any, warnings: List[str], strict: bool) -> List[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"Invalid field 'link_groups': expected list, received {type(value).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Discarded.")
        return []

    groups: List[List[str]] = []
    for i, group in enumerate(value):
        if not isinstance(group, list) or not all(isinstance(m, str) for m in group):
            msg = f"Invalid link group at index {i}: expected list[str]."
            if strict:
                raise TypeError(msg)
            warnings.append(f"{msg} Discarded.")
            continue
        groups.append(list(group))
    return groups
