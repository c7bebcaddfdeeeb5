"""
Tests for half-year certificate windows.
"""

from datetime import date, datetime

import pytest

from app.core.errors import ValidationError
from app.services.certificate_periods import detect_period, get_period


class TestGetPeriod:
    def test_first_half_window(self):
        window = get_period("first_half", 2025)

        assert window.starts_at == datetime(2025, 1, 1)
        assert window.ends_before == datetime(2025, 7, 1)
        assert window.description == "January - June 2025"
        assert window.marker == "2025H1"

    def test_second_half_runs_to_new_year(self):
        window = get_period("second_half", 2025)

        assert window.starts_at == datetime(2025, 7, 1)
        assert window.ends_before == datetime(2026, 1, 1)
        assert window.description == "July - December 2025"
        assert window.marker == "2025H2"

    def test_window_is_half_open(self):
        window = get_period("first_half", 2025)

        assert window.contains(datetime(2025, 1, 1))
        assert window.contains(datetime(2025, 6, 30, 23, 59, 59))
        assert not window.contains(datetime(2025, 7, 1))
        assert not window.contains(datetime(2024, 12, 31, 23, 59, 59))

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            get_period("q3", 2025)

    def test_invalid_year(self):
        with pytest.raises(ValidationError):
            get_period("first_half", 1999)


class TestDetectPeriod:
    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2025, 1, 1), "first_half"),
            (date(2025, 6, 30), "first_half"),
            (date(2025, 7, 1), "second_half"),
            (date(2025, 12, 31), "second_half"),
        ],
    )
    def test_month_decides_the_half(self, today, expected):
        window = detect_period(today)

        assert window.period == expected
        assert window.year == 2025
