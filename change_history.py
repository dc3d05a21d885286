"""
ChangeHistory: bounded undo/redo over full input snapshots
===========================================================
Each entry is a deep, independent copy of the historical and projection
records. Both stacks are capped; the oldest entry is evicted first.
A fresh edit clears the redo stack, so redo is only possible directly
after an undo.
"""

import copy
from dataclasses import dataclass
from typing import List

from config import HISTORY_LIMIT, MAX_HISTORY_LIMIT
from input_model import HistoricalRecord, InputModel, ProjectionRecord
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChangeSnapshot:
    historical: HistoricalRecord
    projections: ProjectionRecord

    @classmethod
    def capture(cls, model: InputModel) -> "ChangeSnapshot":
        return cls(copy.deepcopy(model.historical), copy.deepcopy(model.projections))

    def restore_into(self, model: InputModel):
        """Replace the model's tracked records with copies of this snapshot."""
        model.historical = copy.deepcopy(self.historical)
        model.projections = copy.deepcopy(self.projections)


class ChangeHistory:
    """Two bounded stacks of ChangeSnapshot."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        self.undo_stack: List[ChangeSnapshot] = []
        self.redo_stack: List[ChangeSnapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def _push_bounded(self, stack: List[ChangeSnapshot], snapshot: ChangeSnapshot):
        stack.append(copy.deepcopy(snapshot))
        while len(stack) > self.limit:
            stack.pop(0)

    def push_snapshot(self, current: ChangeSnapshot):
        """Record the pre-mutation state. Invalidates any pending redo."""
        self._push_bounded(self.undo_stack, current)
        self.redo_stack.clear()
        logger.debug("History push: undo=%d", len(self.undo_stack))

    def undo(self, current: ChangeSnapshot) -> ChangeSnapshot:
        """Return the previous state, or `current` unchanged if there is none."""
        if not self.undo_stack:
            return current
        self._push_bounded(self.redo_stack, current)
        previous = self.undo_stack.pop()
        logger.debug("Undo: undo=%d redo=%d", len(self.undo_stack), len(self.redo_stack))
        return previous

    def redo(self, current: ChangeSnapshot) -> ChangeSnapshot:
        """Return the state undone most recently, or `current` if there is none."""
        if not self.redo_stack:
            return current
        self._push_bounded(self.undo_stack, current)
        following = self.redo_stack.pop()
        logger.debug("Redo: undo=%d redo=%d", len(self.undo_stack), len(self.redo_stack))
        return following

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()
