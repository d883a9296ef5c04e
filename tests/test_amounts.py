from decimal import Decimal

import pytest

from finance_tracker.amounts import (
    format_currency,
    parse_currency,
    round_money,
    signed_amount,
    to_decimal,
)
from finance_tracker.errors import InvalidAmount, InvalidType, UnsupportedCurrency


def test_expense_is_stored_negative_and_income_positive():
    assert signed_amount("45.50", "expense") == Decimal("-45.50")
    assert signed_amount(2500, "income") == Decimal("2500.00")


def test_zero_expense_has_no_sign():
    result = signed_amount("0", "expense")
    assert result == 0
    assert not result.is_signed()


@pytest.mark.parametrize("raw", ["abc", "", None, "nan", float("inf"), True])
def test_non_numeric_amounts_are_rejected(raw):
    with pytest.raises(InvalidAmount):
        signed_amount(raw, "expense")


def test_negative_raw_amount_is_rejected():
    with pytest.raises(InvalidAmount):
        signed_amount("-5", "income")


@pytest.mark.parametrize("raw", ["1e30", "12345678901234567890123456789"])
def test_amounts_too_large_for_cents_are_rejected(raw):
    with pytest.raises(InvalidAmount):
        signed_amount(raw, "expense")
    with pytest.raises(InvalidAmount):
        round_money(raw)


def test_unknown_type_is_rejected():
    with pytest.raises(InvalidType):
        signed_amount("5", "transfer")


def test_rounding_is_half_away_from_zero():
    assert round_money("0.005") == Decimal("0.01")
    assert round_money("2.675") == Decimal("2.68")
    assert round_money("-2.675") == Decimal("-2.68")
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.parametrize(
    "amount, currency, expected",
    [
        (Decimal("-50.25"), "GBP", "-£50.25"),
        (Decimal("1000"), "GBP", "£1,000.00"),
        (1000, "USD", "US$1,000.00"),
        ("500", "eur", "€500.00"),
        (Decimal("0"), "GBP", "£0.00"),
    ],
)
def test_format_currency(amount, currency, expected):
    assert format_currency(amount, currency) == expected


def test_unsupported_currency():
    with pytest.raises(UnsupportedCurrency):
        format_currency(10, "JPY")


@pytest.mark.parametrize("raw", ["0.01", "1000000.00", "0.005"])
def test_format_then_parse_returns_the_stored_amount(raw):
    stored = signed_amount(raw, "expense")
    assert parse_currency(format_currency(stored, "GBP"), "GBP") == stored
    assert stored == -round_money(raw)


def test_parse_currency_rejects_other_symbols():
    with pytest.raises(InvalidAmount):
        parse_currency("US$5.00", "GBP")
