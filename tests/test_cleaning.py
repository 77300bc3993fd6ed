"""Tests for value cleaning: amounts, counts, flags and text."""

import math
from decimal import Decimal

import pytest

from linga_core.cleaning import (
    ZERO,
    clean_text,
    neutralize,
    normalize_amount,
    strip_invisibles,
    to_flag,
    to_int,
    to_money,
)

SAMPLES = [
    None,
    "",
    "100.00",
    "50",
    "not-a-number",
    "AED 1,250.75",
    "$ 1 234.50",
    "(12.50)",
    "-7.25",
    "1.2.3",
    "AED (12.50)",
    "1e3",
    " 12.00 ",
    42,
    12.5,
    float("nan"),
    float("inf"),
    Decimal("3.10"),
]


class TestNormalizeAmount:
    """Parsing of heterogeneous monetary fields."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("100.00", Decimal("100.00")),
            ("AED 1,250.75", Decimal("1250.75")),
            ("$ 1 234.50", Decimal("1234.50")),
            ("(12.50)", Decimal("-12.50")),
            ("AED (12.50)", Decimal("-12.50")),
            ("$(12.00)", Decimal("-12.00")),
            ("(1,250.00) AED", Decimal("-1250.00")),
            ("-7.25", Decimal("-7.25")),
            (" 12.00 ", Decimal("12.00")),
        ],
    )
    def test_parses_strings(self, raw: str, expected: Decimal) -> None:
        assert normalize_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "", "not-a-number", "1.2.3", "--5", "1e3", "AED 2.5E-1", "(-5)", True]
    )
    def test_unparseable_is_zero(self, raw: object) -> None:
        assert normalize_amount(raw) == 0

    def test_numbers_are_returned_unchanged(self) -> None:
        assert normalize_amount(42) == 42
        assert normalize_amount(12.5) == 12.5
        assert normalize_amount(Decimal("3.10")) == Decimal("3.10")

    def test_non_finite_numbers_are_zero(self) -> None:
        for value in (float("nan"), float("inf"), float("-inf"), Decimal("NaN")):
            result = normalize_amount(value)
            assert result == 0
            assert not (isinstance(result, float) and math.isnan(result))

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw: object) -> None:
        once = normalize_amount(raw)
        assert normalize_amount(once) == once


def test_to_money_keeps_float_digits() -> None:
    assert to_money(12.1) == Decimal("12.1")
    assert isinstance(to_money(3), Decimal)
    assert to_money("garbage") == ZERO


@pytest.mark.parametrize(
    "raw, expected",
    [("3", 3), (2, 2), ("2.6", 3), (5.0, 5), ("-4", 0), (None, 0), ("abc", 0), (float("nan"), 0)],
)
def test_to_int(raw: object, expected: int) -> None:
    assert to_int(raw) == expected


def test_to_int_default_for_unparseable() -> None:
    assert to_int("n/a", default=-1) == -1
    assert to_int("1e3", default=-1) == -1


@pytest.mark.parametrize("raw", [True, "true", "TRUE", "Y", "y", "yes", "1", 1])
def test_to_flag_truthy(raw: object) -> None:
    assert to_flag(raw) is True


@pytest.mark.parametrize("raw", [False, None, "", "N", "false", "no", 0, "2"])
def test_to_flag_falsy(raw: object) -> None:
    assert to_flag(raw) is False


def test_strip_invisibles() -> None:
    assert strip_invisibles("  Main\u00a0Dining\u200b  ") == "Main Dining"
    assert strip_invisibles("a\tb\r\n  c") == "a b c"
    assert strip_invisibles(None) is None
    assert strip_invisibles(float("nan")) is None
    assert clean_text(None) == ""


def test_neutralize() -> None:
    assert neutralize("=SUM(A1:A10)") == "'=SUM(A1:A10)"
    assert neutralize("+971 50 000") == "'+971 50 000"
    assert neutralize("@cmd") == "'@cmd"
    assert neutralize("-discount") == "'-discount"
    assert neutralize("Staff Discount") == "Staff Discount"
    assert neutralize(-5.0) == -5.0
    assert neutralize(None) is None
