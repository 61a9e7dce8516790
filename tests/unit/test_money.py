"""Tests for fs_common.money — cent conversion and display."""

from decimal import Decimal

import pytest

from src.fs_common.money import (
    EPSILON_CENTS,
    cents_to_display,
    round_cents,
    to_cents,
)


class TestToCents:
    def test_float_without_binary_drift(self) -> None:
        assert to_cents(0.1) == 10
        assert to_cents(12.99) == 1299

    def test_string_and_int(self) -> None:
        assert to_cents("17.60") == 1760
        assert to_cents(" 4 ") == 400
        assert to_cents(3) == 300

    def test_sub_cent_rounds_half_up(self) -> None:
        assert to_cents("0.005") == 1
        assert to_cents("0.004") == 0
        assert to_cents("-0.005") == -1

    @pytest.mark.parametrize("value", [None, True, "abc", "", "NaN", "Infinity"])
    def test_rejects_non_amounts(self, value: object) -> None:
        with pytest.raises(ValueError, match="Not a monetary amount"):
            to_cents(value)


class TestRoundCents:
    def test_half_up(self) -> None:
        assert round_cents(Decimal("1539.5")) == 1540
        assert round_cents(Decimal("220.4999")) == 220

    def test_negative_half_away_from_zero(self) -> None:
        assert round_cents(Decimal("-2.5")) == -3


class TestDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"

    def test_thousands_separator(self) -> None:
        assert cents_to_display(123456) == "$1,234.56"


def test_epsilon_is_one_cent() -> None:
    assert EPSILON_CENTS == 1
