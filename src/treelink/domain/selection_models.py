from __future__ import annotations

"""
Selection Domain Data Models.

Defines the tri-state selection value carried by every folder node and the
sparse overlay record used to persist per-path selection and expansion.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

# -----------------------------------------------------------------------------
# TRI-STATE SELECTION
# -----------------------------------------------------------------------------

class SelectionState(str, Enum):
    """
    Selection value of a folder node.

    MIXED is only ever derived from children; it is never set directly.
    """
    SELECTED = "selected"
    UNSELECTED = "unselected"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: Any) -> Optional["SelectionState"]:
        """
        Convert a persisted value into a state.

        Accepts state names (any case), legacy booleans (True/False) and
        None, which stands for 'no recorded selection'.

        Raises:
            ValueError: If the value cannot be interpreted.
        """
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.SELECTED if value else cls.UNSELECTED
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Unsupported selection value: {value!r}")


# Persistence baseline: nodes matching it are omitted from overlays
BASELINE_STATE = SelectionState.UNSELECTED
BASELINE_EXPANDED = True

# -----------------------------------------------------------------------------
# OVERLAY RECORDS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FolderState:
    """
    Persisted selection and expansion of one folder.

    Attributes:
        path: Absolute folder path, matched exactly on restore.
        selected: Recorded state, or None to leave the selection untouched.
        expanded: Expansion flag.
    """
    path: str
    selected: Optional[SelectionState]
    expanded: bool = BASELINE_EXPANDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "selected": self.selected.value if self.selected is not None else None,
            "expanded": self.expanded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderState":
        if not isinstance(data, dict):
            raise ValueError(f"Folder state record must be a mapping, got {type(data).__name__}.")
        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError("Folder state record requires a non-empty 'path'.")
        return cls(
            path=path,
            selected=SelectionState.parse(data.get("selected")),
            expanded=bool(data.get("expanded", BASELINE_EXPANDED)),
        )


def overlay_to_json(states: Iterable[FolderState]) -> List[Dict[str, Any]]:
    """Serialize an overlay into its JSON-compatible list form."""
    return [s.to_dict() for s in states]


def overlay_from_json(raw: Iterable[Dict[str, Any]]) -> List[FolderState]:
    """
    Deserialize an overlay list.

    Raises:
        ValueError: On a malformed record.
    """
    return [FolderState.from_dict(item) for item in raw]
