"""
Unit tests for bounded undo/redo history
"""

from change_history import ChangeHistory, ChangeSnapshot
from input_model import InputModel


def _snapshot_with_sales(value: str) -> ChangeSnapshot:
    model = InputModel()
    model.historical.sales[3] = value
    return ChangeSnapshot.capture(model)


class TestChangeSnapshot:
    def test_capture_is_deep(self):
        model = InputModel()
        snap = ChangeSnapshot.capture(model)
        model.historical.sales[0] = "500"
        assert snap.historical.sales[0] == "0"

    def test_restore_is_deep(self):
        model = InputModel()
        snap = _snapshot_with_sales("1000")
        snap.restore_into(model)
        model.historical.sales[3] = "1"
        assert snap.historical.sales[3] == "1000"


class TestChangeHistory:
    """Undo / redo semantics."""

    def setup_method(self):
        self.history = ChangeHistory(limit=20)

    def test_empty_undo_returns_current(self):
        current = _snapshot_with_sales("5")
        assert self.history.undo(current) is current
        assert not self.history.can_redo

    def test_empty_redo_returns_current(self):
        current = _snapshot_with_sales("5")
        assert self.history.redo(current) is current

    def test_undo_then_redo(self):
        before = _snapshot_with_sales("100")
        after = _snapshot_with_sales("200")
        self.history.push_snapshot(before)

        restored = self.history.undo(after)
        assert restored.historical.sales[3] == "100"

        redone = self.history.redo(restored)
        assert redone.historical.sales[3] == "200"
        assert self.history.can_undo
        assert not self.history.can_redo

    def test_push_clears_redo(self):
        self.history.push_snapshot(_snapshot_with_sales("100"))
        self.history.undo(_snapshot_with_sales("200"))
        assert self.history.can_redo

        self.history.push_snapshot(_snapshot_with_sales("100"))
        assert not self.history.can_redo
        current = _snapshot_with_sales("300")
        assert self.history.redo(current) is current

    def test_pushed_snapshot_is_copied(self):
        snap = _snapshot_with_sales("100")
        self.history.push_snapshot(snap)
        snap.historical.sales[3] = "mutated"
        assert self.history.undo_stack[-1].historical.sales[3] == "100"

    def test_stacks_are_bounded(self):
        for i in range(35):
            self.history.push_snapshot(_snapshot_with_sales(str(i)))
        assert len(self.history.undo_stack) == 20
        # Oldest entries are evicted first
        assert self.history.undo_stack[0].historical.sales[3] == "15"

        current = _snapshot_with_sales("current")
        for _ in range(30):
            current = self.history.undo(current)
        assert len(self.history.undo_stack) == 0
        assert len(self.history.redo_stack) == 20

    def test_limit_cannot_exceed_twenty(self):
        history = ChangeHistory(limit=100)
        for i in range(30):
            history.push_snapshot(_snapshot_with_sales(str(i)))
        assert history.limit == 20
        assert len(history.undo_stack) == 20

    def test_clear(self):
        self.history.push_snapshot(_snapshot_with_sales("1"))
        self.history.clear()
        assert not self.history.can_undo
        assert not self.history.can_redo
