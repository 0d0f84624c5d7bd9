from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from core.formats.formatters import NumberFormatter, TimeFormatter
from core.utils.errors import InvalidFormatPatternError


def test_number_formatter_fixed_precision() -> None:
    formatter = NumberFormatter(".3f")

    assert formatter(1) == "1.000"
    assert formatter(2.5) == "2.500"
    assert formatter(Decimal("1.25")) == "1.250"
    assert formatter.precision == 3
    assert formatter.presentation == "f"


def test_number_formatter_grouping_and_width() -> None:
    assert NumberFormatter(",")(1234567) == "1,234,567"
    assert NumberFormatter(">8.1f")(3.14159) == "     3.1"
    assert NumberFormatter("08.2f")(3.14159) == "00003.14"
    assert NumberFormatter(".0%")(0.25) == "25%"


def test_number_formatter_integer_types_round_floats() -> None:
    formatter = NumberFormatter("d")

    assert formatter(2.6) == "3"
    assert formatter(7) == "7"
    assert NumberFormatter("x")(255.0) == "ff"
    assert formatter(float("inf")) == "inf"


@pytest.mark.parametrize("pattern", [".3q", "abc", ".f3", ",_d"])
def test_number_formatter_rejects_invalid_patterns(pattern: str) -> None:
    with pytest.raises(InvalidFormatPatternError) as exc_info:
        NumberFormatter(pattern)

    assert exc_info.value.family == "number"
    assert exc_info.value.pattern == pattern


def test_time_formatter_dates_and_datetimes() -> None:
    formatter = TimeFormatter("%Y-%m-%d")

    assert formatter(datetime(2011, 1, 1)) == "2011-01-01"
    assert formatter(date(2011, 1, 1)) == "2011-01-01"


def test_time_formatter_local_extensions() -> None:
    value = datetime(2024, 3, 5, 14, 7, 9, 123456)

    assert TimeFormatter("%H:%M:%S.%L")(value) == "14:07:09.123"
    assert TimeFormatter("[%e]")(value) == "[ 5]"
    assert TimeFormatter("100%% at %H")(value) == "100% at 14"
    assert TimeFormatter("%L")(date(2024, 3, 5)) == "000"


@pytest.mark.parametrize("pattern", ["%Y-%Q", "%", "trailing %"])
def test_time_formatter_rejects_invalid_patterns(pattern: str) -> None:
    with pytest.raises(InvalidFormatPatternError):
        TimeFormatter(pattern)
