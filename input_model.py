"""
InputModel: historical line items, projection assumptions and valuation inputs
===============================================================================
Percent and currency cells are stored as the raw text the analyst typed, so an
entry such as "42.50" round-trips unchanged. Numbers are only produced when a
calculation consumes a value, through `to_number`, which never raises.

All sequences have a fixed length (4 historical years, 5 projection periods,
3 working-capital years). Mutations go through `set_value`, which refuses any
index outside the declared range.
"""

import copy
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from field_order import (
    CURRENCY_TEXT,
    HISTORICAL,
    HISTORICAL_YEARS,
    NUMERIC,
    PROJECTION_PERIODS,
    PROJECTIONS,
    WORKING_CAPITAL_YEARS,
    FieldSpec,
)

_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class InvalidRecordError(ValueError):
    """Raised when a serialized record does not match its declared shape."""


def to_number(value: Any) -> float:
    """
    Lenient numeric coercion.

    Accepts the leading numeric part of a string ("12.5%" -> 12.5), ignores
    thousands separators, and returns 0.0 for anything unparsable or non-finite.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    text = str(value).replace(",", "").strip()
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def to_numbers(values: List[Any]) -> List[float]:
    return [to_number(v) for v in values]


def coerce_for(spec: FieldSpec, raw: Any) -> Any:
    """Convert user input to the stored representation for `spec`."""
    if spec.kind == NUMERIC:
        return to_number(raw)
    text = "" if raw is None else str(raw)
    if spec.kind == CURRENCY_TEXT:
        text = text.replace(",", "")
    return text


def _zeros_text(n: int) -> List[str]:
    return ["0"] * n


def _zeros(n: int) -> List[float]:
    return [0.0] * n


class _FixedShapeRecord:
    """Shared shape checking and indexed mutation for the input records."""

    # array name -> (length, is_text)
    SHAPE: Dict[str, tuple] = {}

    def validate(self):
        for name, (length, is_text) in self.SHAPE.items():
            values = getattr(self, name)
            if not isinstance(values, list) or len(values) != length:
                raise InvalidRecordError(f"{type(self).__name__}.{name} must be a list of {length}")
            for v in values:
                if is_text and not isinstance(v, str):
                    raise InvalidRecordError(f"{type(self).__name__}.{name} must hold text")
                if not is_text and (isinstance(v, bool) or not isinstance(v, (int, float))):
                    raise InvalidRecordError(f"{type(self).__name__}.{name} must hold numbers")

    def set_value(self, array: str, index: int, value: Any):
        if array not in self.SHAPE:
            raise KeyError(f"{type(self).__name__} has no series {array!r}")
        length, _ = self.SHAPE[array]
        if not 0 <= index < length:
            raise IndexError(f"{array}[{index}] outside 0..{length - 1}")
        getattr(self, array)[index] = value

    def get_value(self, array: str, index: int) -> Any:
        return getattr(self, array)[index]

    def clear_series(self, array: str):
        """Blank a whole series: text cells become "", numeric cells 0."""
        length, is_text = self.SHAPE[array]
        setattr(self, array, [""] * length if is_text else _zeros(length))

    def to_dict(self) -> Dict[str, list]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Any):
        if not isinstance(raw, dict):
            raise InvalidRecordError(f"{cls.__name__} payload must be an object")
        missing = [name for name in cls.SHAPE if name not in raw]
        if missing:
            raise InvalidRecordError(f"{cls.__name__} missing series: {', '.join(missing)}")
        record = cls(**{name: copy.deepcopy(raw[name]) for name in cls.SHAPE})
        record.validate()
        return record


@dataclass
class HistoricalRecord(_FixedShapeRecord):
    """Years Y1..Y4 as reported; working-capital days cover Y2..Y4 only."""
    sales: List[str] = field(default_factory=lambda: _zeros_text(HISTORICAL_YEARS))
    material_cost_pct: List[str] = field(default_factory=lambda: _zeros_text(HISTORICAL_YEARS))
    manufacturing_cost_pct: List[str] = field(default_factory=lambda: _zeros_text(HISTORICAL_YEARS))
    operating_profit: List[str] = field(default_factory=lambda: _zeros_text(HISTORICAL_YEARS))
    other_income: List[float] = field(default_factory=lambda: _zeros(HISTORICAL_YEARS))
    interest: List[float] = field(default_factory=lambda: _zeros(HISTORICAL_YEARS))
    depreciation: List[float] = field(default_factory=lambda: _zeros(HISTORICAL_YEARS))
    tax_pct: List[str] = field(default_factory=lambda: _zeros_text(HISTORICAL_YEARS))
    debtor_days: List[float] = field(default_factory=lambda: _zeros(WORKING_CAPITAL_YEARS))
    inventory_days: List[float] = field(default_factory=lambda: _zeros(WORKING_CAPITAL_YEARS))
    payable_days: List[float] = field(default_factory=lambda: _zeros(WORKING_CAPITAL_YEARS))
    capex: List[float] = field(default_factory=lambda: _zeros(HISTORICAL_YEARS))

    SHAPE = {
        "sales": (HISTORICAL_YEARS, True),
        "material_cost_pct": (HISTORICAL_YEARS, True),
        "manufacturing_cost_pct": (HISTORICAL_YEARS, True),
        "operating_profit": (HISTORICAL_YEARS, True),
        "other_income": (HISTORICAL_YEARS, False),
        "interest": (HISTORICAL_YEARS, False),
        "depreciation": (HISTORICAL_YEARS, False),
        "tax_pct": (HISTORICAL_YEARS, True),
        "debtor_days": (WORKING_CAPITAL_YEARS, False),
        "inventory_days": (WORKING_CAPITAL_YEARS, False),
        "payable_days": (WORKING_CAPITAL_YEARS, False),
        "capex": (HISTORICAL_YEARS, False),
    }


@dataclass
class ProjectionRecord(_FixedShapeRecord):
    """Assumptions for periods P1..P5, all expressed as percentages."""
    sales_growth_pct: List[float] = field(default_factory=lambda: _zeros(PROJECTION_PERIODS))
    material_cost_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    manufacturing_cost_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    sga_cost_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    other_income_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    interest_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    depreciation_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    tax_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))
    capex_pct: List[str] = field(default_factory=lambda: _zeros_text(PROJECTION_PERIODS))

    SHAPE = {
        "sales_growth_pct": (PROJECTION_PERIODS, False),
        "material_cost_pct": (PROJECTION_PERIODS, True),
        "manufacturing_cost_pct": (PROJECTION_PERIODS, True),
        "sga_cost_pct": (PROJECTION_PERIODS, True),
        "other_income_pct": (PROJECTION_PERIODS, True),
        "interest_pct": (PROJECTION_PERIODS, True),
        "depreciation_pct": (PROJECTION_PERIODS, True),
        "tax_pct": (PROJECTION_PERIODS, True),
        "capex_pct": (PROJECTION_PERIODS, True),
    }


@dataclass
class ValuationAssumptions:
    """Discounting and equity-bridge inputs, as typed."""
    wacc: str = "10"
    perpetuity_growth: str = "3"
    fiscal_year_end_month: str = "3"
    cash: str = "0"
    debt: str = "0"
    shares_outstanding: str = "0"
    current_share_price: str = "0"

    @property
    def wacc_rate(self) -> float:
        return to_number(self.wacc) / 100

    @property
    def growth_rate(self) -> float:
        return to_number(self.perpetuity_growth) / 100

    @property
    def month(self) -> int:
        """Fiscal year-end month; anything unset or outside 1-12 means December."""
        month = int(to_number(self.fiscal_year_end_month))
        return month if 1 <= month <= 12 else 12

    @property
    def month_fraction(self) -> float:
        return (12 - self.month) / 12

    def to_dict(self):
        return asdict(self)


@dataclass
class Y4WorkingCapitalInputs:
    """Absolute Y4 balances; baseline for the first projected working-capital change."""
    debtors: str = ""
    inventory: str = ""
    payables: str = ""

    @property
    def working_capital(self) -> float:
        return to_number(self.debtors) + to_number(self.inventory) - to_number(self.payables)

    def to_dict(self):
        return asdict(self)


@dataclass
class InputModel:
    """Single source of truth for every calculation."""
    historical: HistoricalRecord = field(default_factory=HistoricalRecord)
    projections: ProjectionRecord = field(default_factory=ProjectionRecord)
    valuation: ValuationAssumptions = field(default_factory=ValuationAssumptions)
    y4_working_capital: Y4WorkingCapitalInputs = field(default_factory=Y4WorkingCapitalInputs)

    def record(self, name: str) -> _FixedShapeRecord:
        if name == HISTORICAL:
            return self.historical
        if name == PROJECTIONS:
            return self.projections
        raise KeyError(f"Unknown record: {name!r}")

    def value_of(self, spec: FieldSpec) -> Any:
        return self.record(spec.record).get_value(spec.array, spec.index)
