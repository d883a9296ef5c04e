"""Budget progress calculation.

This module turns a budget and the matching expense transactions into
spend-vs-budget figures.  It is a pure function of its inputs and is used
both by the dashboard aggregation and by the budget pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Tuple

from .amounts import ZERO, round_money, to_decimal
from .config import OVER_THRESHOLD, WARNING_THRESHOLD
from .errors import InvalidAmount
from .models import Budget, Transaction

GOOD = "good"
WARNING = "warning"
OVER = "over"

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class BudgetProgress:
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    display_percentage: Decimal
    status: str

    @property
    def is_over(self) -> bool:
        return self.status == OVER


def month_window(year: int, month: int) -> Tuple[date, date]:
    """Return the half-open ``[start, end)`` date range of a calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def in_month(value: date, year: int, month: int) -> bool:
    start, end = month_window(year, month)
    return start <= value < end


def status_for(percentage: Decimal) -> str:
    """Map an unclamped spend percentage to its status tier.

    Lower bounds are inclusive: exactly 80% is ``warning`` and exactly
    100% is ``over``.
    """
    if percentage >= OVER_THRESHOLD:
        return OVER
    if percentage >= WARNING_THRESHOLD:
        return WARNING
    return GOOD


def expenses_for_budget(budget: Budget, transactions: Iterable[Transaction]) -> List[Transaction]:
    """Select the transactions that count against ``budget``.

    Only the owner's expense transactions in the budget's category and
    calendar month are kept.
    """
    start, end = month_window(budget.year, budget.month)
    return [
        t for t in transactions
        if t.user_id == budget.user_id
        and t.is_expense
        and t.category_id == budget.category_id
        and start <= t.date < end
    ]


def calculate_budget_progress(budget: Budget, transactions: Iterable[Transaction]) -> BudgetProgress:
    """Calculate spent, remaining, percentage and status for a budget.

    ``transactions`` must already be restricted to the budget's expenses
    (see :func:`expenses_for_budget`).

    Args:
        budget: The budget being measured.
        transactions: Expense transactions counted against it.

    Returns:
        A :class:`BudgetProgress`.  ``remaining`` never goes below zero;
        overspend shows up only in ``percentage`` and ``status``.
        ``display_percentage`` is clamped to 100 for progress bars.

    Raises:
        InvalidAmount: if the budget or a transaction amount is not numeric.

    Example:
        >>> progress = calculate_budget_progress(budget_300, [t1, t2, t3])
        >>> progress.spent, progress.status
        (Decimal('84.25'), 'good')
    """
    amount = to_decimal(budget.amount)
    if amount < 0:
        raise InvalidAmount("Budget amount must not be negative")

    total = sum((to_decimal(t.amount) for t in transactions), ZERO)
    spent = round_money(abs(total))
    remaining = round_money(max(ZERO, amount - spent))
    percentage = round_money(spent / amount * HUNDRED) if amount > 0 else ZERO

    return BudgetProgress(
        spent=spent,
        remaining=remaining,
        percentage=percentage,
        display_percentage=min(HUNDRED, percentage),
        status=status_for(percentage),
    )
