"""
DCFWorkbook: the one writer of the input model
===============================================
All mutations of the historical and projection records go through the named
operations below. Each one pushes exactly one pre-mutation snapshot onto the
ChangeHistory before changing anything; undo and redo swap snapshots without
pushing. After every settled mutation the records are handed to the store
(if any); a failing store is logged and never affects calculations.

Valuation inputs and the Y4 working-capital balances are plain settings on
the model and are not tracked by undo/redo.
"""

from dataclasses import fields
from typing import Any, Dict, List, Tuple

from bulk_import import BulkImportParser, PasteResult
from change_history import ChangeHistory, ChangeSnapshot
from dcf_engine import DCFEngine
from field_order import HISTORICAL, PROJECTIONS, get_field
from input_model import (
    HistoricalRecord,
    InputModel,
    ProjectionRecord,
    ValuationAssumptions,
    Y4WorkingCapitalInputs,
    coerce_for,
)
from logging_config import get_logger

logger = get_logger(__name__)

# Row name -> series cleared together by "Clear row"
ROW_CLEAR_TARGETS: Dict[str, List[Tuple[str, str]]] = {
    "sales": [(HISTORICAL, "sales")],
    "sales_growth": [(PROJECTIONS, "sales_growth_pct")],
    "material_cost": [(HISTORICAL, "material_cost_pct"), (PROJECTIONS, "material_cost_pct")],
    "manufacturing_cost": [(HISTORICAL, "manufacturing_cost_pct"), (PROJECTIONS, "manufacturing_cost_pct")],
    "sga_cost": [(PROJECTIONS, "sga_cost_pct")],
    "operating_profit": [(HISTORICAL, "operating_profit")],
    "other_income": [(HISTORICAL, "other_income"), (PROJECTIONS, "other_income_pct")],
    "interest": [(HISTORICAL, "interest"), (PROJECTIONS, "interest_pct")],
    "depreciation": [(HISTORICAL, "depreciation"), (PROJECTIONS, "depreciation_pct")],
    "tax": [(HISTORICAL, "tax_pct"), (PROJECTIONS, "tax_pct")],
    "debtor_days": [(HISTORICAL, "debtor_days")],
    "inventory_days": [(HISTORICAL, "inventory_days")],
    "payable_days": [(HISTORICAL, "payable_days")],
    "capex": [(HISTORICAL, "capex")],
    "capex_pct": [(PROJECTIONS, "capex_pct")],
}


class DCFWorkbook:
    """Input model + change history + optional persistence."""

    def __init__(self, model: InputModel = None, history: ChangeHistory = None, store=None):
        self.model = model or InputModel()
        self.history = history or ChangeHistory()
        self.store = store
        self.importer = BulkImportParser(self.history)

    @classmethod
    def from_store(cls, store, history: ChangeHistory = None) -> "DCFWorkbook":
        historical, projections = store.load()
        model = InputModel(historical=historical, projections=projections)
        return cls(model=model, history=history, store=store)

    # ------------------------------------------------------------------
    # Tracked mutations
    # ------------------------------------------------------------------

    def _snapshot(self) -> ChangeSnapshot:
        return ChangeSnapshot.capture(self.model)

    def edit_field(self, key: str, raw_value: Any) -> bool:
        """Set one cell. Returns False (and records nothing) if the value is unchanged."""
        spec = get_field(key)
        value = coerce_for(spec, raw_value)
        if self.model.value_of(spec) == value:
            return False
        self.history.push_snapshot(self._snapshot())
        self.model.record(spec.record).set_value(spec.array, spec.index, value)
        self._persist()
        return True

    def clear_row(self, row: str):
        if row not in ROW_CLEAR_TARGETS:
            raise KeyError(f"Unknown row: {row!r}")
        self.history.push_snapshot(self._snapshot())
        for record, array in ROW_CLEAR_TARGETS[row]:
            self.model.record(record).clear_series(array)
        logger.debug("Cleared row %s", row)
        self._persist()

    def paste(self, text: str, start_key: str) -> PasteResult:
        result = self.importer.paste(self.model, text, start_key)
        if result.applied:
            self._persist()
        return result

    def reset(self):
        """Zero every historical and projection field (undoable)."""
        self.history.push_snapshot(self._snapshot())
        self.model.historical = HistoricalRecord()
        self.model.projections = ProjectionRecord()
        logger.info("Workbook reset to zero defaults")
        self._persist()

    def undo(self) -> bool:
        if not self.history.can_undo:
            return False
        self.history.undo(self._snapshot()).restore_into(self.model)
        self._persist()
        return True

    def redo(self) -> bool:
        if not self.history.can_redo:
            return False
        self.history.redo(self._snapshot()).restore_into(self.model)
        self._persist()
        return True

    # ------------------------------------------------------------------
    # Untracked settings
    # ------------------------------------------------------------------

    def update_valuation(self, **values: Any):
        self._update_settings(self.model.valuation, ValuationAssumptions, values)

    def update_y4_working_capital(self, **values: Any):
        self._update_settings(self.model.y4_working_capital, Y4WorkingCapitalInputs, values)

    @staticmethod
    def _update_settings(target, cls, values: Dict[str, Any]):
        allowed = {f.name for f in fields(cls)}
        unknown = set(values) - allowed
        if unknown:
            raise KeyError(f"Unknown {cls.__name__} field(s): {', '.join(sorted(unknown))}")
        for name, value in values.items():
            setattr(target, name, "" if value is None else str(value).replace(",", ""))

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def recompute(self) -> Dict:
        """Full, fresh recompute of every derived entity."""
        return DCFEngine(self.model).run()

    def value_of(self, key: str) -> Any:
        return self.model.value_of(get_field(key))

    def _persist(self):
        if self.store is not None:
            self.store.save(self.model.historical, self.model.projections)
