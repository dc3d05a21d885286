"""
Unit tests for historical ratios and the income projection
"""

import pytest

from input_model import HistoricalRecord, InputModel, ProjectionRecord
from projection_engine import (
    ProjectionEngine,
    analyze_historical,
    average,
    growth_rate,
    net_profit,
    percent_of,
    profit_before_tax,
)
from sample_data import build_sample_model


class TestHelpers:
    def test_percent_of(self):
        assert percent_of(200, 1100) == pytest.approx(18.1818, rel=1e-4)
        assert percent_of(200, 0) == 0.0

    def test_growth_rate(self):
        assert growth_rate(1100, 1000) == pytest.approx(10.0)
        assert growth_rate(100, 0) is None

    def test_average(self):
        assert average([10, 20, None]) == pytest.approx(15.0)
        assert average([0, 10]) == pytest.approx(5.0)
        assert average([0, 0, 0]) is None
        assert average([None, None]) is None
        assert average([]) is None

    def test_profit_lines(self):
        assert profit_before_tax(240, 10, 20, 30) == 200
        assert net_profit(200, 25) == 150


class TestAnalyzeHistorical:
    """Derived Y1..Y4 lines."""

    def setup_method(self):
        self.analysis = analyze_historical(build_sample_model().historical)

    def test_margins(self):
        assert self.analysis.opm == pytest.approx([20, 20, 20, 24])
        assert self.analysis.avg_opm == pytest.approx(21)

    def test_sga_is_residual(self):
        assert self.analysis.sga_pct == pytest.approx([20, 20, 20, 16])
        assert self.analysis.avg_sga_pct == pytest.approx(19)

    def test_pbt_and_net_profit(self):
        assert self.analysis.pbt == pytest.approx([120, 140, 150, 200])
        assert self.analysis.avg_pbt == pytest.approx(152.5)
        assert self.analysis.net_profit == pytest.approx([90, 105, 112.5, 150])
        assert self.analysis.npm[3] == pytest.approx(15)

    def test_growth_starts_undefined(self):
        assert self.analysis.sales_growth[0] is None
        assert self.analysis.sales_growth[1] == pytest.approx(12.5)
        assert self.analysis.profit_growth[0] is None
        assert self.analysis.profit_growth[3] == pytest.approx(100 / 3)

    def test_ratio_averages(self):
        assert self.analysis.avg_material_cost_pct == pytest.approx(40)
        assert self.analysis.avg_tax_pct == pytest.approx(25)
        assert self.analysis.other_income_pct[0] == pytest.approx(1.25)

    def test_zero_sales_reports_no_data(self):
        analysis = analyze_historical(HistoricalRecord())
        assert analysis.opm == [0.0, 0.0, 0.0, 0.0]
        assert analysis.npm == [0.0, 0.0, 0.0, 0.0]
        assert analysis.sales_growth == [None, None, None, None]
        assert analysis.avg_opm is None
        assert analysis.avg_sales_growth is None


class TestProjectionEngine:
    """P1..P5 income statement."""

    def test_sales_chaining(self):
        model = InputModel(
            historical=HistoricalRecord(sales=["0", "0", "0", "1000"]),
            projections=ProjectionRecord(sales_growth_pct=[10.0] * 5),
        )
        sales = ProjectionEngine(model).project_sales()
        assert sales == pytest.approx([1100, 1210, 1331, 1464.1, 1610.51])

    def test_operating_margin(self):
        model = InputModel(
            historical=HistoricalRecord(sales=["0", "0", "0", "1000"]),
            projections=ProjectionRecord(
                sales_growth_pct=[10.0] * 5,
                material_cost_pct=["60"] * 5,
                manufacturing_cost_pct=[str(900 / 11 - 60)] * 5,
            ),
        )
        income = ProjectionEngine(model).project()
        assert income.operating_profit[0] == pytest.approx(200)
        assert income.opm[0] == pytest.approx(18.1818, rel=1e-4)

    def test_income_lines(self, sample_model):
        income = ProjectionEngine(sample_model).project()
        assert income.sales[0] == pytest.approx(1100)
        assert income.material_cost[0] == pytest.approx(440)
        assert income.manufacturing_cost[0] == pytest.approx(220)
        assert income.sga_cost[0] == pytest.approx(110)
        assert income.operating_profit[0] == pytest.approx(330)
        assert income.pbt[0] == pytest.approx(286)
        assert income.net_profit[0] == pytest.approx(214.5)
        assert income.tax[0] == pytest.approx(71.5)
        assert income.npm[0] == pytest.approx(19.5)

    def test_projected_growth_summary(self, sample_model):
        income = ProjectionEngine(sample_model).project()
        assert income.sales_growth[0] is None
        assert income.avg_sales_growth == pytest.approx(10)
        assert income.avg_profit_growth == pytest.approx(10)

    def test_unparsable_inputs_count_as_zero(self):
        model = InputModel(
            historical=HistoricalRecord(sales=["0", "0", "0", "n/a"]),
            projections=ProjectionRecord(sales_growth_pct=[10.0] * 5, tax_pct=["abc"] * 5),
        )
        income = ProjectionEngine(model).project()
        assert income.sales == [0.0] * 5
        assert income.npm == [0.0] * 5
