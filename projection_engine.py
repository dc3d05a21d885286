"""
ProjectionEngine: historical ratios and the five-period income projection
==========================================================================
Historical side (derived, never stored):
- OPM = Operating Profit / Sales
- SGA% is a residual: 100 - Material% - Manufacturing% - OPM
- PBT = Operating Profit + Other Income - Interest - Depreciation
- Net Profit = PBT x (1 - Tax%)

Projection side:
- Sales compound period over period from Y4 sales: S_p = S_{p-1} x (1 + g_p)
- Material, manufacturing and SGA are independent % of the period's sales
- Other income, interest and depreciation are % of the period's sales

Averages report None ("no data") when every underlying value is zero.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from input_model import HistoricalRecord, InputModel, ProjectionRecord, to_number, to_numbers


def percent_of(value: float, base: float) -> float:
    """value / base x 100, or 0.0 when base is zero."""
    if base == 0:
        return 0.0
    return value / base * 100


def growth_rate(current: float, previous: float) -> Optional[float]:
    """Period-over-period growth in %, None when the prior value is zero."""
    if previous == 0:
        return None
    return (current - previous) / previous * 100


def average(values: List[Optional[float]]) -> Optional[float]:
    """Arithmetic mean ignoring undefined entries; None if nothing or all zeros."""
    defined = [v for v in values if v is not None]
    if not defined or all(v == 0 for v in defined):
        return None
    return sum(defined) / len(defined)


def profit_before_tax(operating_profit: float, other_income: float, interest: float,
                      depreciation: float) -> float:
    return operating_profit + other_income - interest - depreciation


def net_profit(pbt: float, tax_pct: float) -> float:
    return pbt * (1 - tax_pct / 100)


@dataclass
class HistoricalAnalysis:
    """Per-year derived lines for Y1..Y4 plus their averages."""
    sales: List[float]
    operating_profit: List[float]
    opm: List[float]
    sga_pct: List[float]
    pbt: List[float]
    net_profit: List[float]
    npm: List[float]
    sales_growth: List[Optional[float]]   # Y1 is always None
    profit_growth: List[Optional[float]]  # Y1 is always None
    other_income_pct: List[float]
    interest_pct: List[float]
    depreciation_pct: List[float]

    avg_material_cost_pct: Optional[float] = None
    avg_manufacturing_cost_pct: Optional[float] = None
    avg_sga_pct: Optional[float] = None
    avg_other_income_pct: Optional[float] = None
    avg_interest_pct: Optional[float] = None
    avg_depreciation_pct: Optional[float] = None
    avg_tax_pct: Optional[float] = None
    avg_opm: Optional[float] = None
    avg_npm: Optional[float] = None
    avg_pbt: Optional[float] = None
    avg_sales_growth: Optional[float] = None
    avg_profit_growth: Optional[float] = None


@dataclass
class IncomeProjection:
    """Projected income statement for P1..P5."""
    sales: List[float] = field(default_factory=list)
    material_cost: List[float] = field(default_factory=list)
    manufacturing_cost: List[float] = field(default_factory=list)
    sga_cost: List[float] = field(default_factory=list)
    operating_profit: List[float] = field(default_factory=list)
    other_income: List[float] = field(default_factory=list)
    interest: List[float] = field(default_factory=list)
    depreciation: List[float] = field(default_factory=list)
    pbt: List[float] = field(default_factory=list)
    tax: List[float] = field(default_factory=list)
    net_profit: List[float] = field(default_factory=list)
    opm: List[float] = field(default_factory=list)
    npm: List[float] = field(default_factory=list)
    tax_pct: List[float] = field(default_factory=list)
    sales_growth: List[Optional[float]] = field(default_factory=list)   # P1 is None
    profit_growth: List[Optional[float]] = field(default_factory=list)  # P1 is None
    avg_sales_growth: Optional[float] = None
    avg_profit_growth: Optional[float] = None


def analyze_historical(historical: HistoricalRecord) -> HistoricalAnalysis:
    sales = to_numbers(historical.sales)
    operating_profit = to_numbers(historical.operating_profit)
    material = to_numbers(historical.material_cost_pct)
    manufacturing = to_numbers(historical.manufacturing_cost_pct)
    tax = to_numbers(historical.tax_pct)
    other_income = to_numbers(historical.other_income)
    interest = to_numbers(historical.interest)
    depreciation = to_numbers(historical.depreciation)

    opm = [percent_of(op, s) for op, s in zip(operating_profit, sales)]
    sga = [100 - m - mf - o for m, mf, o in zip(material, manufacturing, opm)]
    pbt = [
        profit_before_tax(op, oi, it, dep)
        for op, oi, it, dep in zip(operating_profit, other_income, interest, depreciation)
    ]
    profit = [net_profit(p, t) for p, t in zip(pbt, tax)]
    npm = [percent_of(np_, s) for np_, s in zip(profit, sales)]
    sales_growth = [None] + [growth_rate(sales[i], sales[i - 1]) for i in range(1, len(sales))]
    profit_growth = [None] + [growth_rate(profit[i], profit[i - 1]) for i in range(1, len(profit))]
    other_income_pct = [percent_of(v, s) for v, s in zip(other_income, sales)]
    interest_pct = [percent_of(v, s) for v, s in zip(interest, sales)]
    depreciation_pct = [percent_of(v, s) for v, s in zip(depreciation, sales)]

    return HistoricalAnalysis(
        sales=sales,
        operating_profit=operating_profit,
        opm=opm,
        sga_pct=sga,
        pbt=pbt,
        net_profit=profit,
        npm=npm,
        sales_growth=sales_growth,
        profit_growth=profit_growth,
        other_income_pct=other_income_pct,
        interest_pct=interest_pct,
        depreciation_pct=depreciation_pct,
        avg_material_cost_pct=average(material),
        avg_manufacturing_cost_pct=average(manufacturing),
        avg_sga_pct=average(sga),
        avg_other_income_pct=average(other_income_pct),
        avg_interest_pct=average(interest_pct),
        avg_depreciation_pct=average(depreciation_pct),
        avg_tax_pct=average(tax),
        avg_opm=average(opm),
        avg_npm=average(npm),
        avg_pbt=average(pbt),
        avg_sales_growth=average(sales_growth[1:]),
        avg_profit_growth=average(profit_growth[1:]),
    )


class ProjectionEngine:
    """Builds the P1..P5 income projection from the input model."""

    def __init__(self, model: InputModel):
        self.historical: HistoricalRecord = model.historical
        self.projections: ProjectionRecord = model.projections

    def project_sales(self) -> List[float]:
        """Chain growth sequentially from the last historical year."""
        sales = []
        previous = to_number(self.historical.sales[-1])
        for growth in to_numbers(self.projections.sales_growth_pct):
            previous = previous * (1 + growth / 100)
            sales.append(previous)
        return sales

    def project(self) -> IncomeProjection:
        p = self.projections
        result = IncomeProjection()
        result.sales = self.project_sales()

        for i, sales in enumerate(result.sales):
            material = sales * to_number(p.material_cost_pct[i]) / 100
            manufacturing = sales * to_number(p.manufacturing_cost_pct[i]) / 100
            sga = sales * to_number(p.sga_cost_pct[i]) / 100
            operating_profit = sales - material - manufacturing - sga
            other_income = sales * to_number(p.other_income_pct[i]) / 100
            interest = sales * to_number(p.interest_pct[i]) / 100
            depreciation = sales * to_number(p.depreciation_pct[i]) / 100
            tax_pct = to_number(p.tax_pct[i])
            pbt = profit_before_tax(operating_profit, other_income, interest, depreciation)
            profit = net_profit(pbt, tax_pct)

            result.material_cost.append(material)
            result.manufacturing_cost.append(manufacturing)
            result.sga_cost.append(sga)
            result.operating_profit.append(operating_profit)
            result.other_income.append(other_income)
            result.interest.append(interest)
            result.depreciation.append(depreciation)
            result.tax_pct.append(tax_pct)
            result.pbt.append(pbt)
            result.tax.append(pbt - profit)
            result.net_profit.append(profit)
            result.opm.append(percent_of(operating_profit, sales))
            result.npm.append(percent_of(profit, sales))

        result.sales_growth = [None] + [
            growth_rate(result.sales[i], result.sales[i - 1]) for i in range(1, len(result.sales))
        ]
        result.profit_growth = [None] + [
            growth_rate(result.net_profit[i], result.net_profit[i - 1])
            for i in range(1, len(result.net_profit))
        ]
        result.avg_sales_growth = average(result.sales_growth[1:])
        result.avg_profit_growth = average(result.profit_growth[1:])
        return result
