"""
FieldOrder: the fixed, ordered catalogue of every editable input cell
======================================================================
The position of a key in FIELD_ORDER is a public contract:
1. Forward navigation (Enter on a cell) moves to the next key in this list
2. Bulk paste fills cells in this order, starting at the focused key

Reordering entries changes both behaviours for every caller.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

# Record names
HISTORICAL = "historical"
PROJECTIONS = "projections"

# Coercion kinds
PERCENT_TEXT = "percent_text"    # kept as typed, e.g. "42.5"
CURRENCY_TEXT = "currency_text"  # kept as typed, commas removed
NUMERIC = "numeric"              # parsed to float, 0.0 on failure

HISTORICAL_YEARS = 4
PROJECTION_PERIODS = 5
WORKING_CAPITAL_YEARS = 3


@dataclass(frozen=True)
class FieldSpec:
    """One addressable input cell."""
    key: str
    record: str
    array: str
    index: int
    kind: str

    @property
    def is_text(self) -> bool:
        return self.kind in (PERCENT_TEXT, CURRENCY_TEXT)


def _line(prefix: str, record: str, array: str, count: int, kind: str) -> List[FieldSpec]:
    return [FieldSpec(f"{prefix}-{i}", record, array, i, kind) for i in range(count)]


# Grouped by statement line; historical years come before projection periods
# within each line, matching the on-screen layout.
FIELD_ORDER: Tuple[FieldSpec, ...] = tuple(
    _line("sales", HISTORICAL, "sales", HISTORICAL_YEARS, CURRENCY_TEXT)
    + _line("sales_growth", PROJECTIONS, "sales_growth_pct", PROJECTION_PERIODS, NUMERIC)
    + _line("material_cost", HISTORICAL, "material_cost_pct", HISTORICAL_YEARS, PERCENT_TEXT)
    + _line("proj_material_cost", PROJECTIONS, "material_cost_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("manufacturing_cost", HISTORICAL, "manufacturing_cost_pct", HISTORICAL_YEARS, PERCENT_TEXT)
    + _line("proj_manufacturing_cost", PROJECTIONS, "manufacturing_cost_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("proj_sga_cost", PROJECTIONS, "sga_cost_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("operating_profit", HISTORICAL, "operating_profit", HISTORICAL_YEARS, CURRENCY_TEXT)
    + _line("other_income", HISTORICAL, "other_income", HISTORICAL_YEARS, NUMERIC)
    + _line("proj_other_income", PROJECTIONS, "other_income_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("interest", HISTORICAL, "interest", HISTORICAL_YEARS, NUMERIC)
    + _line("proj_interest", PROJECTIONS, "interest_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("depreciation", HISTORICAL, "depreciation", HISTORICAL_YEARS, NUMERIC)
    + _line("proj_depreciation", PROJECTIONS, "depreciation_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("tax", HISTORICAL, "tax_pct", HISTORICAL_YEARS, PERCENT_TEXT)
    + _line("proj_tax", PROJECTIONS, "tax_pct", PROJECTION_PERIODS, PERCENT_TEXT)
    + _line("debtor_days", HISTORICAL, "debtor_days", WORKING_CAPITAL_YEARS, NUMERIC)
    + _line("inventory_days", HISTORICAL, "inventory_days", WORKING_CAPITAL_YEARS, NUMERIC)
    + _line("payable_days", HISTORICAL, "payable_days", WORKING_CAPITAL_YEARS, NUMERIC)
    + _line("capex", HISTORICAL, "capex", HISTORICAL_YEARS, NUMERIC)
    + _line("proj_capex", PROJECTIONS, "capex_pct", PROJECTION_PERIODS, PERCENT_TEXT)
)

_POSITION: Dict[str, int] = {spec.key: pos for pos, spec in enumerate(FIELD_ORDER)}


def get_field(key: str) -> FieldSpec:
    """Look up a field by key. Raises KeyError for keys outside the catalogue."""
    return FIELD_ORDER[position_of(key)]


def position_of(key: str) -> int:
    if key not in _POSITION:
        raise KeyError(f"Unknown field key: {key!r}")
    return _POSITION[key]


def next_key(key: str) -> Optional[str]:
    """Key reached by forward navigation, or None at the end / for unknown keys."""
    pos = _POSITION.get(key)
    if pos is None or pos >= len(FIELD_ORDER) - 1:
        return None
    return FIELD_ORDER[pos + 1].key


def slice_from(start_key: str, count: int) -> List[FieldSpec]:
    """Up to `count` consecutive fields beginning at `start_key`; shorter near the end."""
    start = position_of(start_key)
    return list(FIELD_ORDER[start:start + max(count, 0)])


def fields_for(record: str, array: str) -> List[FieldSpec]:
    return [spec for spec in FIELD_ORDER if spec.record == record and spec.array == array]
