"""
Unit tests for store value coercion.

Run: pytest tests/unit/test_number_utils.py -v
"""

import pytest
from datetime import date, datetime

from utils.number_utils import to_number, to_int, positive_or, to_date


class TestToNumber:
    """Tests for to_number()"""

    @pytest.mark.parametrize("raw,expected", [
        (250, 250.0),
        ("1,200", 1200.0),
        (" 12.5 ", 12.5),
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (-5, 0.0),
        (True, 0.0),
    ])
    def test_coercion(self, raw, expected):
        assert to_number(raw) == expected

    def test_custom_default(self):
        assert to_number(None, default=7) == 7


class TestToInt:
    """Tests for to_int()"""

    def test_rounds_up(self):
        assert to_int(2.1) == 3

    def test_numeric_string(self):
        assert to_int("4") == 4

    def test_junk_is_zero(self):
        assert to_int("x") == 0


class TestPositiveOr:
    """Tests for positive_or()"""

    def test_positive_kept(self):
        assert positive_or(80, 100) == 80

    def test_zero_uses_fallback(self):
        assert positive_or(0, 100) == 100


class TestToDate:
    """Tests for to_date()"""

    def test_iso_string(self):
        assert to_date("2025-03-01") == date(2025, 3, 1)

    def test_timestamp_string(self):
        assert to_date("2025-03-01T08:00:00Z") == date(2025, 3, 1)

    def test_datetime(self):
        assert to_date(datetime(2025, 3, 1, 8, 0)) == date(2025, 3, 1)

    def test_invalid(self):
        assert to_date("soon") is None
        assert to_date(None) is None
        assert to_date(20250301) is None
