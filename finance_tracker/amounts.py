"""Amount and currency helpers.

Amounts are handled as :class:`decimal.Decimal` and rounded to cents with
round-half-away-from-zero (``ROUND_HALF_UP`` in :mod:`decimal` terms).
Expenses are stored negative and income positive; :func:`signed_amount`
is the single place where that convention is applied.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .config import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES
from .errors import InvalidAmount, InvalidType, UnsupportedCurrency
from .models import EXPENSE, INCOME, TRANSACTION_TYPES

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# en-GB display symbols
CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "US$",
    "EUR": "€",
}

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert user or storage input into a finite :class:`Decimal`.

    Floats go through ``str`` so that ``0.1`` stays ``0.1``.

    Raises:
        InvalidAmount: for booleans, ``None``, empty strings, non-numeric
            text and non-finite values.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip() if not isinstance(value, (int, float)) else repr(value)
        if not text:
            raise InvalidAmount("Amount is required")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: {value!r}") from None
    if not result.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r}")
    return result


def round_money(value: Number) -> Decimal:
    """Round to 2 decimal places, halves away from zero.

    Raises:
        InvalidAmount: the value is not a number or has too many digits
            to be held to the cent.
    """
    try:
        return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"Amount too large: {value!r}") from None


def validate_type(txn_type: str) -> str:
    if txn_type not in TRANSACTION_TYPES:
        raise InvalidType(f'Type must be "{INCOME}" or "{EXPENSE}", got {txn_type!r}')
    return txn_type


def validate_currency(currency: str) -> str:
    code = (currency or "").strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrency(f"Unsupported currency: {currency!r}")
    return code


def signed_amount(raw_amount: Number, txn_type: str) -> Decimal:
    """Apply the storage sign convention to a positive raw amount.

    Example:
        >>> signed_amount("45.50", "expense")
        Decimal('-45.50')
    """
    validate_type(txn_type)
    amount = round_money(raw_amount)
    if amount < 0:
        raise InvalidAmount("Amount must be a positive number")
    if txn_type == EXPENSE and amount:
        return -amount
    return amount


def format_currency(amount: Number, currency: str = DEFAULT_CURRENCY) -> str:
    """Format an amount for display, keeping its sign.

    Example:
        >>> format_currency(Decimal("-50.25"), "GBP")
        '-£50.25'
        >>> format_currency(1000, "USD")
        'US$1,000.00'
    """
    symbol = CURRENCY_SYMBOLS[validate_currency(currency)]
    value = round_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def parse_currency(text: str, currency: str = DEFAULT_CURRENCY) -> Decimal:
    """Inverse of :func:`format_currency`.

    Raises:
        InvalidAmount: if the text is not an amount in the given currency.
    """
    symbol = CURRENCY_SYMBOLS[validate_currency(currency)]
    cleaned = (text or "").strip()
    negative = cleaned.startswith("-")
    if negative:
        cleaned = cleaned[1:]
    if not cleaned.startswith(symbol):
        raise InvalidAmount(f"Expected a {currency} amount, got {text!r}")
    value = round_money(cleaned[len(symbol):].replace(",", ""))
    return -value if negative else value
