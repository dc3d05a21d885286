"""
DCFEngine: working capital, capex, free cash flow and equity valuation
=======================================================================
Implements the pipeline that turns the income projection into a value per share:
- Working capital from historical day-averages, first change against the
  user-entered Y4 balances
- Capex as % of projected sales
- FCF = NOPAT + Depreciation - Change in WC - |Capex|
- Fractional discount periods from the fiscal year-end month
- Gordon Growth terminal value, guarded against WACC <= g
- EV -> Equity bridge with cash and debt, per-share value and upside

Every intermediate value is recorded as a CalculationTraceStep.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from input_model import InputModel, ValuationAssumptions, to_number, to_numbers
from logging_config import get_logger
from projection_engine import (
    HistoricalAnalysis,
    IncomeProjection,
    ProjectionEngine,
    analyze_historical,
    average,
    percent_of,
)

logger = get_logger(__name__)

DAYS_IN_YEAR = 365
TV_DOMINANCE_WARNING_PCT = 80


class DegenerateValuationError(ValueError):
    """Terminal value is undefined for the given WACC and perpetuity growth."""


class CalculationTraceStep:
    """Single step in the DCF calculation trace."""
    def __init__(self, name: str, formula: str = None, inputs=None, output=None,
                 output_units: str = None, notes: str = None):
        self.name = name
        self.formula = formula
        self.inputs = inputs or {}
        self.output = output
        self.output_units = output_units
        self.notes = notes or ""

    def to_dict(self):
        return {
            "name": self.name,
            "formula": self.formula,
            "inputs": self.inputs,
            "output": self.output,
            "output_units": self.output_units,
            "notes": self.notes,
        }


# =============================================================================
# Working capital
# =============================================================================

@dataclass
class WorkingCapitalSchedule:
    avg_debtor_days: Optional[float]
    avg_inventory_days: Optional[float]
    avg_payable_days: Optional[float]
    baseline: float  # Y4 debtors + inventory - payables
    debtors: List[float] = field(default_factory=list)
    cogs: List[float] = field(default_factory=list)
    inventory: List[float] = field(default_factory=list)
    payables: List[float] = field(default_factory=list)
    working_capital: List[float] = field(default_factory=list)
    change: List[float] = field(default_factory=list)


class WorkingCapitalEngine:
    """Projects receivables, inventory and payables from average days."""

    def __init__(self, model: InputModel):
        self.historical = model.historical
        self.projections = model.projections
        self.y4 = model.y4_working_capital

    def project(self, income: IncomeProjection) -> WorkingCapitalSchedule:
        schedule = WorkingCapitalSchedule(
            avg_debtor_days=average(to_numbers(self.historical.debtor_days)),
            avg_inventory_days=average(to_numbers(self.historical.inventory_days)),
            avg_payable_days=average(to_numbers(self.historical.payable_days)),
            baseline=self.y4.working_capital,
        )
        debtor_days = schedule.avg_debtor_days or 0.0
        inventory_days = schedule.avg_inventory_days or 0.0
        payable_days = schedule.avg_payable_days or 0.0

        previous = schedule.baseline
        for i, sales in enumerate(income.sales):
            cost_pct = (to_number(self.projections.material_cost_pct[i])
                        + to_number(self.projections.manufacturing_cost_pct[i]))
            cogs = sales * cost_pct / 100
            debtors = sales * debtor_days / DAYS_IN_YEAR
            inventory = cogs * inventory_days / DAYS_IN_YEAR
            payables = cogs * payable_days / DAYS_IN_YEAR
            working_capital = debtors + inventory - payables

            schedule.cogs.append(cogs)
            schedule.debtors.append(debtors)
            schedule.inventory.append(inventory)
            schedule.payables.append(payables)
            schedule.working_capital.append(working_capital)
            schedule.change.append(working_capital - previous)
            previous = working_capital
        return schedule


# =============================================================================
# Capex
# =============================================================================

@dataclass
class CapexSchedule:
    historical_pct: List[float]
    avg_historical_pct: Optional[float]  # over Y2..Y4
    capex: List[float] = field(default_factory=list)


class CapexEngine:
    def __init__(self, model: InputModel):
        self.historical = model.historical
        self.projections = model.projections

    def project(self, income: IncomeProjection, historical: HistoricalAnalysis) -> CapexSchedule:
        historical_pct = [
            percent_of(capex, sales)
            for capex, sales in zip(to_numbers(self.historical.capex), historical.sales)
        ]
        schedule = CapexSchedule(
            historical_pct=historical_pct,
            avg_historical_pct=average(historical_pct[1:]),
        )
        schedule.capex = [
            sales * to_number(pct) / 100
            for sales, pct in zip(income.sales, self.projections.capex_pct)
        ]
        return schedule


# =============================================================================
# Free cash flow
# =============================================================================

@dataclass
class FreeCashFlowSchedule:
    ebit: List[float] = field(default_factory=list)
    nopat: List[float] = field(default_factory=list)
    depreciation: List[float] = field(default_factory=list)
    working_capital_change: List[float] = field(default_factory=list)
    capex: List[float] = field(default_factory=list)
    fcf: List[float] = field(default_factory=list)


class FreeCashFlowEngine:
    """FCFF = EBIT x (1 - t) + D&A - change in WC - |Capex|."""

    def project(self, income: IncomeProjection, working_capital: WorkingCapitalSchedule,
                capex: CapexSchedule) -> FreeCashFlowSchedule:
        schedule = FreeCashFlowSchedule()
        for i, ebit in enumerate(income.operating_profit):
            nopat = ebit * (1 - income.tax_pct[i] / 100)
            depreciation = income.depreciation[i]
            wc_change = working_capital.change[i]
            # A negative capex entry never adds cash.
            fcf = nopat + depreciation - wc_change - abs(capex.capex[i])

            schedule.ebit.append(ebit)
            schedule.nopat.append(nopat)
            schedule.depreciation.append(depreciation)
            schedule.working_capital_change.append(wc_change)
            schedule.capex.append(capex.capex[i])
            schedule.fcf.append(fcf)
        return schedule


# =============================================================================
# Valuation
# =============================================================================

class TerminalValueStrategy(ABC):
    """Abstract base for terminal value calculation strategies."""

    @abstractmethod
    def calculate(self, final_year_fcf: float, wacc: float, growth: float, final_period: float,
                  trace: List[CalculationTraceStep]) -> Tuple[float, float]:
        """
        Return (terminal_value, pv_terminal_value).

        Adds calculation steps to trace automatically.
        """


class GordonGrowthTerminalValue(TerminalValueStrategy):
    """Terminal Value = FCF_N x (1 + g) / (WACC - g)."""

    def calculate(self, final_year_fcf: float, wacc: float, growth: float, final_period: float,
                  trace: List[CalculationTraceStep]) -> Tuple[float, float]:
        if wacc <= growth:
            raise DegenerateValuationError(
                f"WACC ({wacc:.1%}) must be greater than perpetuity growth ({growth:.1%})"
            )
        if 1 + wacc <= 0:
            raise DegenerateValuationError(f"WACC ({wacc:.1%}) must be above -100%")

        terminal_value = final_year_fcf * (1 + growth) / (wacc - growth)
        trace.append(CalculationTraceStep(
            name="Terminal Value (Gordon Growth)",
            formula="FCF_P5 × (1 + g) / (WACC - g)",
            inputs={
                "final_year_fcf": final_year_fcf,
                "wacc": wacc,
                "growth_rate": growth,
            },
            output=terminal_value,
            notes=f"Assumes perpetual {growth:.1%} growth",
        ))

        try:
            discount_factor = (1 + wacc) ** final_period
        except OverflowError as e:
            raise DegenerateValuationError(f"Discount factor out of range: {e}") from e
        pv_terminal_value = terminal_value / discount_factor
        trace.append(CalculationTraceStep(
            name="PV of Terminal Value",
            formula=f"Terminal Value / (1 + WACC)^{final_period:g}",
            inputs={
                "terminal_value": terminal_value,
                "discount_factor": discount_factor,
            },
            output=pv_terminal_value,
        ))
        return terminal_value, pv_terminal_value


@dataclass
class ValuationResult:
    wacc: float
    perpetuity_growth: float
    month_fraction: float
    periods: List[float]
    discounted_fcf: List[Optional[float]]
    cash: float
    debt: float
    shares_outstanding: float
    current_price: float
    terminal_value: Optional[float] = None
    discounted_terminal_value: Optional[float] = None
    enterprise_value: Optional[float] = None
    equity_value: Optional[float] = None
    equity_value_per_share: Optional[float] = None
    upside_percent: Optional[float] = None
    is_valid: bool = True
    invalid_reason: Optional[str] = None

    def to_dict(self):
        return asdict(self)


def _all_finite(values: List[Optional[float]]) -> bool:
    return all(v is not None and math.isfinite(v) for v in values)


def value_per_share(equity_value: float, shares_outstanding: float) -> float:
    return equity_value / shares_outstanding if shares_outstanding > 0 else 0.0


def upside_percent(per_share: float, current_price: float) -> float:
    return (per_share - current_price) / current_price * 100 if current_price > 0 else 0.0


class ValuationEngine:
    """Discounts FCF and terminal value, then bridges EV to equity per share."""

    def __init__(self, terminal_strategy: TerminalValueStrategy = None,
                 trace: List[CalculationTraceStep] = None):
        self.terminal_strategy = terminal_strategy or GordonGrowthTerminalValue()
        self.trace = trace if trace is not None else []

    @staticmethod
    def _flag_non_finite(result: ValuationResult) -> ValuationResult:
        """Inputs too large for float arithmetic: keep nothing downstream of the overflow."""
        logger.warning("Valuation flagged invalid: non-finite intermediate value")
        result.is_valid = False
        result.invalid_reason = "Non-finite valuation (inputs too large)"
        result.discounted_fcf = [v if _all_finite([v]) else None for v in result.discounted_fcf]
        result.terminal_value = None
        result.discounted_terminal_value = None
        result.enterprise_value = None
        result.equity_value = None
        result.equity_value_per_share = None
        result.upside_percent = None
        return result

    def discount_periods(self, month_fraction: float, count: int) -> List[float]:
        """Period p is discounted over p - month_fraction years."""
        return [p - month_fraction for p in range(1, count + 1)]

    def _discount(self, fcf: List[float], wacc: float, periods: List[float]) -> List[Optional[float]]:
        if 1 + wacc <= 0:
            return [None] * len(fcf)
        discounted = []
        for cash_flow, period in zip(fcf, periods):
            try:
                discounted.append(cash_flow / (1 + wacc) ** period)
            except OverflowError:
                discounted.append(None)
        return discounted

    def value(self, fcf: List[float], assumptions: ValuationAssumptions) -> ValuationResult:
        wacc = assumptions.wacc_rate
        growth = assumptions.growth_rate
        month_fraction = assumptions.month_fraction
        periods = self.discount_periods(month_fraction, len(fcf))

        result = ValuationResult(
            wacc=wacc,
            perpetuity_growth=growth,
            month_fraction=month_fraction,
            periods=periods,
            discounted_fcf=self._discount(fcf, wacc, periods),
            cash=to_number(assumptions.cash),
            debt=to_number(assumptions.debt),
            shares_outstanding=to_number(assumptions.shares_outstanding),
            current_price=to_number(assumptions.current_share_price),
        )
        self.trace.append(CalculationTraceStep(
            name="Discount Periods",
            formula="p - (12 - fiscal year-end month) / 12",
            inputs={"fiscal_year_end_month": assumptions.month, "month_fraction": month_fraction},
            output=periods,
            output_units="years",
        ))

        if not fcf:
            result.is_valid = False
            result.invalid_reason = "No projected cash flows"
            return result

        try:
            tv, pv_tv = self.terminal_strategy.calculate(fcf[-1], wacc, growth, periods[-1], self.trace)
        except DegenerateValuationError as e:
            logger.warning("Valuation flagged invalid: %s", e)
            result.is_valid = False
            result.invalid_reason = str(e)
            return result

        if any(v is None for v in result.discounted_fcf):
            result.is_valid = False
            result.invalid_reason = "Discounted cash flow out of range"
            return result

        pv_fcf_sum = sum(result.discounted_fcf)
        enterprise_value = pv_fcf_sum + pv_tv
        if not _all_finite([tv, pv_tv, enterprise_value] + result.discounted_fcf):
            return self._flag_non_finite(result)

        result.terminal_value = tv
        result.discounted_terminal_value = pv_tv
        result.enterprise_value = enterprise_value
        self.trace.append(CalculationTraceStep(
            name="Enterprise Value",
            formula="Sum(PV of FCF) + PV(Terminal Value)",
            inputs={"pv_fcf_sum": pv_fcf_sum, "pv_terminal_value": pv_tv},
            output=result.enterprise_value,
        ))

        result.equity_value = result.enterprise_value + result.cash - result.debt
        self.trace.append(CalculationTraceStep(
            name="Equity Value",
            formula="Enterprise Value + Cash - Debt",
            inputs={
                "enterprise_value": result.enterprise_value,
                "cash": result.cash,
                "debt": result.debt,
            },
            output=result.equity_value,
        ))

        result.equity_value_per_share = value_per_share(result.equity_value, result.shares_outstanding)
        result.upside_percent = upside_percent(result.equity_value_per_share, result.current_price)
        if not _all_finite([result.equity_value, result.equity_value_per_share, result.upside_percent]):
            return self._flag_non_finite(result)
        self.trace.append(CalculationTraceStep(
            name="Equity Value per Share",
            formula="Equity Value / Shares Outstanding",
            inputs={
                "equity_value": result.equity_value,
                "shares_outstanding": result.shares_outstanding,
            },
            output=result.equity_value_per_share,
            notes="0 when shares outstanding is not positive",
        ))
        return result


# =============================================================================
# Orchestration
# =============================================================================

@dataclass
class ProjectedYear:
    period: int
    sales: float
    material_cost: float
    manufacturing_cost: float
    sga_cost: float
    operating_profit: float
    other_income: float
    interest: float
    depreciation: float
    pbt: float
    tax: float
    net_profit: float
    opm: float
    npm: float
    ebit: float
    nopat: float
    capex: float
    debtors: float
    inventory: float
    payables: float
    working_capital: float
    working_capital_change: float
    fcf: float
    discount_period: float
    discounted_fcf: Optional[float]

    def to_dict(self):
        return asdict(self)


class DCFEngine:
    """Runs the whole pipeline from a fresh read of the input model."""

    def __init__(self, model: InputModel):
        self.model = model
        self.trace: List[CalculationTraceStep] = []
        self.warnings: List[str] = []
        self.errors: List[str] = []

    def _run_sanity_checks(self, valuation: ValuationResult, fcf: FreeCashFlowSchedule):
        if not valuation.is_valid:
            self.warnings.append(f"Invalid valuation: {valuation.invalid_reason}")
            return
        if fcf.fcf and fcf.fcf[-1] < 0:
            self.warnings.append("P5 free cash flow is negative; terminal value is negative")
        ev = valuation.enterprise_value
        if ev and ev > 0:
            dominance = valuation.discounted_terminal_value / ev * 100
            if dominance > TV_DOMINANCE_WARNING_PCT:
                self.warnings.append(f"Terminal value is {dominance:.1f}% of enterprise value")
        if valuation.shares_outstanding <= 0:
            self.warnings.append("Shares outstanding not set; per-share value shown as 0")

    def _assemble_years(self, income: IncomeProjection, wc: WorkingCapitalSchedule,
                        capex: CapexSchedule, fcf: FreeCashFlowSchedule,
                        valuation: ValuationResult) -> List[ProjectedYear]:
        years = []
        for i in range(len(income.sales)):
            years.append(ProjectedYear(
                period=i + 1,
                sales=income.sales[i],
                material_cost=income.material_cost[i],
                manufacturing_cost=income.manufacturing_cost[i],
                sga_cost=income.sga_cost[i],
                operating_profit=income.operating_profit[i],
                other_income=income.other_income[i],
                interest=income.interest[i],
                depreciation=income.depreciation[i],
                pbt=income.pbt[i],
                tax=income.tax[i],
                net_profit=income.net_profit[i],
                opm=income.opm[i],
                npm=income.npm[i],
                ebit=fcf.ebit[i],
                nopat=fcf.nopat[i],
                capex=capex.capex[i],
                debtors=wc.debtors[i],
                inventory=wc.inventory[i],
                payables=wc.payables[i],
                working_capital=wc.working_capital[i],
                working_capital_change=wc.change[i],
                fcf=fcf.fcf[i],
                discount_period=valuation.periods[i],
                discounted_fcf=valuation.discounted_fcf[i],
            ))
        return years

    def run(self) -> Dict:
        """Execute the full recompute and return results + trace."""
        try:
            historical = analyze_historical(self.model.historical)
            income = ProjectionEngine(self.model).project()
            self.trace.append(CalculationTraceStep(
                name="Projected Sales",
                formula="Sales_{p-1} × (1 + growth_p)",
                inputs={"y4_sales": historical.sales[-1]},
                output=income.sales,
            ))

            working_capital = WorkingCapitalEngine(self.model).project(income)
            self.trace.append(CalculationTraceStep(
                name="Working Capital Change",
                formula="WC_p - WC_{p-1}; P1 against Y4 balances",
                inputs={"y4_working_capital": working_capital.baseline},
                output=working_capital.change,
            ))

            capex = CapexEngine(self.model).project(income, historical)
            fcf = FreeCashFlowEngine().project(income, working_capital, capex)
            self.trace.append(CalculationTraceStep(
                name="Free Cash Flow",
                formula="NOPAT + Depreciation - ΔWC - |Capex|",
                inputs={"nopat": fcf.nopat, "capex": fcf.capex},
                output=fcf.fcf,
            ))

            valuation = ValuationEngine(trace=self.trace).value(fcf.fcf, self.model.valuation)
            self._run_sanity_checks(valuation, fcf)

            return {
                "success": True,
                "historical": historical,
                "income": income,
                "working_capital": working_capital,
                "capex": capex,
                "free_cash_flow": fcf,
                "valuation": valuation,
                "projected_years": self._assemble_years(income, working_capital, capex, fcf, valuation),
                "errors": self.errors,
                "warnings": self.warnings,
                "trace": [s.to_dict() for s in self.trace],
            }

        except Exception as e:
            logger.exception("DCF calculation failed")
            self.errors.append(f"DCF calculation failed: {str(e)}")
            return {
                "success": False,
                "errors": self.errors,
                "warnings": self.warnings,
                "trace": [s.to_dict() for s in self.trace],
            }
