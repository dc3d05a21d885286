"""
Unit tests for input records and numeric coercion
"""

import pytest

from field_order import get_field
from input_model import (
    HistoricalRecord,
    InputModel,
    InvalidRecordError,
    ProjectionRecord,
    ValuationAssumptions,
    Y4WorkingCapitalInputs,
    coerce_for,
    to_number,
)


class TestToNumber:
    """Lenient numeric coercion never raises."""

    def test_plain_numbers(self):
        assert to_number(12) == 12.0
        assert to_number(12.5) == 12.5
        assert to_number("42.50") == 42.5

    def test_thousands_separators(self):
        assert to_number("1,234.5") == 1234.5

    def test_leading_prefix(self):
        assert to_number("12.5%") == 12.5
        assert to_number("-3x") == -3.0

    def test_unparsable_is_zero(self):
        assert to_number("abc") == 0.0
        assert to_number("") == 0.0
        assert to_number(None) == 0.0
        assert to_number(True) == 0.0

    def test_non_finite_is_zero(self):
        assert to_number(float("nan")) == 0.0
        assert to_number(float("inf")) == 0.0
        assert to_number("1e400") == 0.0
        assert to_number("inf") == 0.0


class TestCoercion:
    def test_currency_text_strips_commas(self):
        assert coerce_for(get_field("sales-0"), "1,000") == "1000"

    def test_percent_text_kept_as_typed(self):
        assert coerce_for(get_field("material_cost-0"), "42.50") == "42.50"

    def test_numeric_parsed(self):
        assert coerce_for(get_field("interest-0"), "1,250") == 1250.0
        assert coerce_for(get_field("sales_growth-0"), "oops") == 0.0


class TestRecords:
    """Fixed-shape records."""

    def test_defaults(self):
        h = HistoricalRecord()
        p = ProjectionRecord()
        assert h.sales == ["0", "0", "0", "0"]
        assert h.debtor_days == [0.0, 0.0, 0.0]
        assert p.sales_growth_pct == [0.0] * 5
        assert p.capex_pct == ["0"] * 5

    def test_set_value_out_of_range(self):
        h = HistoricalRecord()
        with pytest.raises(IndexError):
            h.set_value("debtor_days", 3, 10.0)

    def test_set_value_unknown_series(self):
        with pytest.raises(KeyError):
            ProjectionRecord().set_value("revenue", 0, 1.0)

    def test_clear_series(self):
        h = HistoricalRecord(tax_pct=["25", "25", "25", "25"], interest=[1.0, 2.0, 3.0, 4.0])
        h.clear_series("tax_pct")
        h.clear_series("interest")
        assert h.tax_pct == ["", "", "", ""]
        assert h.interest == [0.0, 0.0, 0.0, 0.0]

    def test_dict_round_trip_is_independent(self):
        h = HistoricalRecord(sales=["1", "2", "3", "4"])
        restored = HistoricalRecord.from_dict(h.to_dict())
        assert restored == h
        restored.sales[0] = "99"
        assert h.sales[0] == "1"

    def test_from_dict_rejects_wrong_length(self):
        raw = HistoricalRecord().to_dict()
        raw["sales"] = ["1", "2"]
        with pytest.raises(InvalidRecordError):
            HistoricalRecord.from_dict(raw)

    def test_from_dict_rejects_wrong_type(self):
        raw = ProjectionRecord().to_dict()
        raw["sales_growth_pct"] = ["10", "10", "10", "10", "10"]
        with pytest.raises(InvalidRecordError):
            ProjectionRecord.from_dict(raw)

    def test_from_dict_rejects_missing_series(self):
        raw = ProjectionRecord().to_dict()
        del raw["tax_pct"]
        with pytest.raises(InvalidRecordError):
            ProjectionRecord.from_dict(raw)

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(InvalidRecordError):
            HistoricalRecord.from_dict(["not", "a", "dict"])


class TestValuationAssumptions:
    def test_rates(self):
        v = ValuationAssumptions(wacc="12", perpetuity_growth="4")
        assert v.wacc_rate == pytest.approx(0.12)
        assert v.growth_rate == pytest.approx(0.04)

    def test_month_fraction(self):
        assert ValuationAssumptions(fiscal_year_end_month="3").month_fraction == pytest.approx(0.75)
        assert ValuationAssumptions(fiscal_year_end_month="12").month_fraction == 0

    @pytest.mark.parametrize("raw", ["", "abc", "0", "13"])
    def test_invalid_month_means_december(self, raw):
        v = ValuationAssumptions(fiscal_year_end_month=raw)
        assert v.month == 12
        assert v.month_fraction == 0


class TestInputModel:
    def test_y4_working_capital(self):
        y4 = Y4WorkingCapitalInputs(debtors="80", inventory="100", payables="70")
        assert y4.working_capital == 110.0
        assert Y4WorkingCapitalInputs().working_capital == 0.0

    def test_value_of(self, sample_model):
        assert sample_model.value_of(get_field("sales-3")) == "1000"
        assert sample_model.value_of(get_field("sales_growth-0")) == 10.0

    def test_unknown_record(self):
        with pytest.raises(KeyError):
            InputModel().record("valuation")
