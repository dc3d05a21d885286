"""
DCF UI Adapter: turn engine output into display-ready values and tables
========================================================================
Pure presentation helpers; nothing here feeds back into a calculation.
1. Number formatting with thousands separators and fixed decimals
2. "No data" (None) rendered as a dash, never as 0 or 0%
3. Working-capital change rendered as its cash effect (an increase is -x)
4. pandas DataFrames for the historical, projection, FCF and bridge tables
"""

import math
from typing import Any, Dict, List, Optional

import pandas as pd

NO_DATA = "—"
YEAR_LABELS = ["Y1", "Y2", "Y3", "Y4"]
PERIOD_LABELS = ["P1", "P2", "P3", "P4", "P5"]


def format_with_commas(value: Optional[float], decimals: int = 0) -> str:
    if value is None or not math.isfinite(value):
        return NO_DATA
    return f"{value:,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    if value is None or not math.isfinite(value):
        return NO_DATA
    return f"{value:.{decimals}f}%"


def format_signed_percent(value: Optional[float], decimals: int = 1) -> str:
    if value is None or not math.isfinite(value):
        return NO_DATA
    return f"{'+' if value >= 0 else ''}{value:.{decimals}f}%"


def format_wc_change(value: float) -> str:
    """Show a working-capital change by its effect on cash."""
    if not math.isfinite(value):
        return NO_DATA
    if value > 0:
        return f"-{format_with_commas(abs(value))}"
    if value < 0:
        return f"+{format_with_commas(abs(value))}"
    return "0"


def format_raw_input(value: Any) -> str:
    """Display form of a stored input cell: numbers lose a trailing .0, text is kept."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def input_display_stale(typed: str, stored: Any) -> bool:
    """True when the text left in an input widget differs from the stored cell's display form."""
    return typed != format_raw_input(stored)


class DCFUIAdapter:
    """Transform DCFEngine.run() output into UI-safe tables."""

    def __init__(self, engine_result: Dict[str, Any]):
        self.engine_result = engine_result
        self.success = bool(engine_result.get("success"))

    def get_ui_data(self) -> Dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "error": self.engine_result.get("errors", ["Unknown error"]),
                "warnings": self.engine_result.get("warnings", []),
            }
        valuation = self.engine_result["valuation"]
        years = self.engine_result["projected_years"]
        return {
            "success": True,
            "is_valid": valuation.is_valid,
            "invalid_reason": valuation.invalid_reason,
            "terminal_value": format_with_commas(valuation.terminal_value),
            "discounted_terminal_value": format_with_commas(valuation.discounted_terminal_value),
            "enterprise_value": format_with_commas(valuation.enterprise_value),
            "equity_value": format_with_commas(valuation.equity_value),
            "equity_value_per_share": format_with_commas(valuation.equity_value_per_share, 2),
            "upside_percent": format_signed_percent(valuation.upside_percent),
            "p5_fcf": format_with_commas(years[-1].fcf) if years else NO_DATA,
            "p5_nopat": format_with_commas(years[-1].nopat) if years else NO_DATA,
            "warnings": self.engine_result.get("warnings", []),
        }

    def format_historical_table(self) -> pd.DataFrame:
        h = self.engine_result["historical"]
        rows = [
            ("Sales", [format_with_commas(v) for v in h.sales], NO_DATA),
            ("Sales Growth", [format_percent(v, 2) for v in h.sales_growth], format_percent(h.avg_sales_growth, 2)),
            ("SGA % (residual)", [format_percent(v, 2) for v in h.sga_pct], format_percent(h.avg_sga_pct, 2)),
            ("Operating Profit", [format_with_commas(v) for v in h.operating_profit], NO_DATA),
            ("OPM", [format_percent(v) for v in h.opm], format_percent(h.avg_opm)),
            ("Other Income %", [format_percent(v) for v in h.other_income_pct], format_percent(h.avg_other_income_pct)),
            ("Interest %", [format_percent(v) for v in h.interest_pct], format_percent(h.avg_interest_pct)),
            ("Depreciation %", [format_percent(v) for v in h.depreciation_pct], format_percent(h.avg_depreciation_pct)),
            ("PBT", [format_with_commas(v) for v in h.pbt], format_with_commas(h.avg_pbt)),
            ("Net Profit", [format_with_commas(v) for v in h.net_profit], NO_DATA),
            ("NPM", [format_percent(v, 2) for v in h.npm], format_percent(h.avg_npm, 2)),
            ("Profit Growth", [format_percent(v) for v in h.profit_growth], format_percent(h.avg_profit_growth)),
        ]
        return pd.DataFrame(
            [[name] + values + [avg] for name, values, avg in rows],
            columns=["Particulars"] + YEAR_LABELS + ["Avg"],
        )

    def format_projection_table(self) -> pd.DataFrame:
        years = self.engine_result["projected_years"]
        income = self.engine_result["income"]
        lines = [
            ("Sales", [format_with_commas(y.sales) for y in years]),
            ("Sales Growth", [format_percent(v) for v in income.sales_growth]),
            ("Material Cost", [format_with_commas(y.material_cost) for y in years]),
            ("Manufacturing Cost", [format_with_commas(y.manufacturing_cost) for y in years]),
            ("SGA Cost", [format_with_commas(y.sga_cost) for y in years]),
            ("Operating Profit", [format_with_commas(y.operating_profit) for y in years]),
            ("OPM", [format_percent(y.opm) for y in years]),
            ("Other Income", [format_with_commas(y.other_income) for y in years]),
            ("Interest", [format_with_commas(y.interest) for y in years]),
            ("Depreciation", [format_with_commas(y.depreciation) for y in years]),
            ("PBT", [format_with_commas(y.pbt) for y in years]),
            ("Net Profit", [format_with_commas(y.net_profit) for y in years]),
            ("NPM", [format_percent(y.npm, 2) for y in years]),
        ]
        return self._period_frame(lines)

    def format_working_capital_table(self) -> pd.DataFrame:
        years = self.engine_result["projected_years"]
        lines = [
            ("Debtors", [format_with_commas(y.debtors) for y in years]),
            ("Inventory", [format_with_commas(y.inventory) for y in years]),
            ("Payables", [format_with_commas(y.payables) for y in years]),
            ("Working Capital", [format_with_commas(y.working_capital) for y in years]),
            ("Change in WC (cash effect)", [format_wc_change(y.working_capital_change) for y in years]),
        ]
        return self._period_frame(lines)

    def format_fcf_projection_table(self) -> pd.DataFrame:
        years = self.engine_result["projected_years"]
        lines = [
            ("EBIT", [format_with_commas(y.ebit) for y in years]),
            ("NOPAT", [format_with_commas(y.nopat) for y in years]),
            ("Depreciation", [f"+{format_with_commas(abs(y.depreciation))}" for y in years]),
            ("Change in WC", [format_wc_change(y.working_capital_change) for y in years]),
            ("Capex", [f"-{format_with_commas(abs(y.capex))}" for y in years]),
            ("Free Cash Flow", [format_with_commas(y.fcf) for y in years]),
            ("Discount Period", [f"{y.discount_period:.2f}" for y in years]),
            ("Discounted FCF", [format_with_commas(y.discounted_fcf) for y in years]),
        ]
        return self._period_frame(lines)

    def format_bridge_table(self) -> pd.DataFrame:
        v = self.engine_result["valuation"]
        rows = [
            ("Terminal Value", format_with_commas(v.terminal_value)),
            ("PV of Terminal Value", format_with_commas(v.discounted_terminal_value)),
            ("Enterprise Value", format_with_commas(v.enterprise_value)),
            ("Add: Cash", format_with_commas(v.cash)),
            ("Less: Debt", format_with_commas(v.debt)),
            ("Equity Value", format_with_commas(v.equity_value)),
            ("Equity Value per Share", format_with_commas(v.equity_value_per_share, 2)),
            ("Upside / Downside", format_signed_percent(v.upside_percent)),
        ]
        return pd.DataFrame(rows, columns=["Item", "Value"])

    def fcf_chart_data(self) -> pd.DataFrame:
        years = self.engine_result["projected_years"]
        return pd.DataFrame({
            "period": [PERIOD_LABELS[y.period - 1] for y in years],
            "fcf": [y.fcf for y in years],
            "discounted_fcf": [y.discounted_fcf for y in years],
        })

    @staticmethod
    def _period_frame(lines: List[tuple]) -> pd.DataFrame:
        return pd.DataFrame(
            [[name] + values for name, values in lines],
            columns=["Particulars"] + PERIOD_LABELS,
        )
