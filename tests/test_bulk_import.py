"""
Unit tests for pasting blocks of values into the input grid
"""

import pytest

from bulk_import import BulkImportParser, tokenize_paste
from change_history import ChangeHistory
from input_model import InputModel


class TestTokenizePaste:
    """Separator and cleanup rules."""

    def test_tabs_and_newlines(self):
        assert tokenize_paste("1\t2\n3\r\n4") == ["1", "2", "3", "4"]

    def test_semicolons_and_wide_spaces(self):
        assert tokenize_paste("1;2  3") == ["1", "2", "3"]

    def test_single_space_is_not_a_separator(self):
        assert tokenize_paste("12 %") == ["12 %"]

    def test_commas_are_stripped_not_split(self):
        assert tokenize_paste("1,234.5\t2,000") == ["1234.5", "2000"]

    def test_discarded_tokens(self):
        assert tokenize_paste("\t\tundefined\tnull\t7\t") == ["7"]

    def test_empty(self):
        assert tokenize_paste("") == []
        assert tokenize_paste("\n\t ;") == []


class TestBulkImportParser:
    """Atomic application with a single history entry."""

    def setup_method(self):
        self.model = InputModel()
        self.history = ChangeHistory()
        self.parser = BulkImportParser(self.history)

    def test_fills_consecutive_fields(self):
        result = self.parser.paste(self.model, "800\t900\t950\t1,000\t10", "sales-0")
        assert result.applied_keys == ["sales-0", "sales-1", "sales-2", "sales-3", "sales_growth-0"]
        assert self.model.historical.sales == ["800", "900", "950", "1000"]
        assert self.model.projections.sales_growth_pct[0] == 10.0
        assert len(self.history.undo_stack) == 1

    def test_pre_paste_state_is_snapshotted(self):
        self.model.historical.sales[0] = "5"
        self.parser.paste(self.model, "100\t200", "sales-0")
        assert self.history.undo_stack[-1].historical.sales[0] == "5"

    def test_excess_tokens_are_dropped(self):
        result = self.parser.paste(self.model, "1\t2\t3", "proj_capex-3")
        assert result.applied_keys == ["proj_capex-3", "proj_capex-4"]
        assert result.dropped_tokens == 1
        assert self.model.projections.capex_pct[3:] == ["1", "2"]

    def test_empty_paste_changes_nothing(self):
        before = InputModel()
        result = self.parser.paste(self.model, "\tnull\n", "sales-0")
        assert not result.applied
        assert self.model == before
        assert not self.history.can_undo

    def test_unknown_start_key(self):
        with pytest.raises(KeyError):
            self.parser.paste(self.model, "1\t2", "revenue-0")
        assert not self.history.can_undo

    def test_stage_does_not_touch_model(self):
        historical, _, keys = self.parser.stage(self.model, ["42"], "tax-0")
        assert keys == ["tax-0"]
        assert historical.tax_pct[0] == "42"
        assert self.model.historical.tax_pct[0] == "0"

    def test_numeric_fields_are_coerced(self):
        self.parser.paste(self.model, "1,250\tn/a", "interest-0")
        assert self.model.historical.interest[:2] == [1250.0, 0.0]
