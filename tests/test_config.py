"""
Unit tests for environment-driven settings
"""

from config import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, history_limit


class TestHistoryLimit:
    def test_default(self):
        assert history_limit(None) == DEFAULT_HISTORY_LIMIT

    def test_lower_value_is_kept(self):
        assert history_limit("5") == 5

    def test_higher_value_is_clamped(self):
        assert history_limit("50") == MAX_HISTORY_LIMIT == 20

    def test_invalid_values_fall_back(self):
        assert history_limit("abc") == 20
        assert history_limit("0") == 20
        assert history_limit("-3") == 20
