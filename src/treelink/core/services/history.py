from __future__ import annotations

"""
Session History Service.

Bounded undo/redo over whole-session snapshots. Recording a new snapshot
drops the redo branch; the oldest snapshot is discarded once the limit is
reached.
"""

import copy
import logging
from typing import Any, Dict, List

from treelink.core.events import EventHook
from treelink.domain.constants import MAX_HISTORY_SIZE

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]


class History:
    """
    Undo list plus redo stack of session snapshots.

    Attributes:
        history_changed: Hook fired after every change of either stack.
    """

    def __init__(self, max_size: int = MAX_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise ValueError("History size must be at least 1.")
        self._max_size = max_size
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []
        self.history_changed = EventHook("history_changed")

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self, snapshot: Snapshot) -> None:
        """Push the state that an upcoming change is about to replace."""
        if len(self._undo) >= self._max_size:
            self._undo.pop(0)
        self._undo.append(copy.deepcopy(snapshot))
        self._redo.clear()
        self.history_changed.emit()

    def undo(self, current: Snapshot) -> Snapshot:
        """
        Step back one snapshot.

        Args:
            current: The live state, kept for redo.

        Raises:
            LookupError: If there is nothing to undo.
        """
        if not self._undo:
            raise LookupError("Nothing to undo.")
        self._redo.append(copy.deepcopy(current))
        previous = self._undo.pop()
        logger.debug(f"History: undo ({len(self._undo)} left).")
        self.history_changed.emit()
        return previous

    def redo(self, current: Snapshot) -> Snapshot:
        """
        Step forward one snapshot.

        Raises:
            LookupError: If there is nothing to redo.
        """
        if not self._redo:
            raise LookupError("Nothing to redo.")
        self._undo.append(copy.deepcopy(current))
        following = self._redo.pop()
        self.history_changed.emit()
        return following

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self.history_changed.emit()
