"""Dashboard aggregation.

This module composes the budget, goal and sharing helpers into the read
only view model shown on the dashboard: the monthly summary, spending by
category, the trailing monthly trend, budget progress, the merged list of
owned and shared budgets, goal progress and the latest transactions.

Grouping is done with pandas on integer cents so that sums stay exact;
results are converted back to :class:`~decimal.Decimal` at the edges.
Nothing here performs I/O or mutates its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .amounts import ZERO, round_money
from .budgets import BudgetProgress, calculate_budget_progress, expenses_for_budget, in_month
from .config import RECENT_TRANSACTIONS_LIMIT, TREND_MONTHS
from .goals import GoalProgress, goal_progress
from .models import (
    EXPENSE,
    INCOME,
    Budget,
    Category,
    CategoryRef,
    Goal,
    Transaction,
    User,
    index_by_id,
    resolve_category,
)
from .sharing import BudgetListing, listing_for


# ---------------------------------------------------------------------------
# View model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary:
    income: Decimal
    expenses: Decimal
    balance: Decimal


@dataclass(frozen=True)
class CategorySpending:
    category: CategoryRef
    amount: Decimal


@dataclass(frozen=True)
class TrendPoint:
    year: int
    month: int
    income: Decimal
    expenses: Decimal

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class BudgetProgressRow:
    budget: Budget
    category: CategoryRef
    progress: BudgetProgress


@dataclass(frozen=True)
class GoalProgressRow:
    goal: Goal
    progress: GoalProgress


@dataclass(frozen=True)
class DashboardView:
    user_id: int
    year: int
    month: int
    summary: DashboardSummary
    spending_by_category: List[CategorySpending] = field(default_factory=list)
    monthly_trend: List[TrendPoint] = field(default_factory=list)
    budget_progress: List[BudgetProgressRow] = field(default_factory=list)
    budgets: List[BudgetListing] = field(default_factory=list)
    goals: List[GoalProgressRow] = field(default_factory=list)
    recent_transactions: List[Transaction] = field(default_factory=list)

    @property
    def has_spending(self) -> bool:
        return any(item.amount > 0 for item in self.spending_by_category)

    @property
    def has_trend(self) -> bool:
        return any(p.income > 0 or p.expenses > 0 for p in self.monthly_trend)

    def trend_frame(self) -> pd.DataFrame:
        """Monthly trend as a DataFrame with columns Month, Income, Expenses."""
        return pd.DataFrame(
            [
                {'Month': p.label, 'Income': float(p.income), 'Expenses': float(p.expenses)}
                for p in self.monthly_trend
            ],
            columns=['Month', 'Income', 'Expenses'],
        )

    def spending_frame(self) -> pd.DataFrame:
        """Spending by category with columns Category, Amount, Color."""
        return pd.DataFrame(
            [
                {'Category': s.category.name, 'Amount': float(s.amount), 'Color': s.category.color}
                for s in self.spending_by_category
            ],
            columns=['Category', 'Amount', 'Color'],
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


_UNCATEGORIZED_KEY = "uncategorized"


def _to_cents(amount) -> int:
    return int(round_money(amount) * 100)


def _from_cents(cents) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(Decimal("0.01"))


def _transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            'type': t.type,
            'date': t.date,
            'cents': _to_cents(t.amount),
        }
        for t in transactions
    ]
    df = pd.DataFrame(rows, columns=['type', 'date', 'cents'])
    df['cents'] = df['cents'].astype('int64')
    df['date'] = pd.to_datetime(df['date'])
    return df


def _for_month(transactions: Iterable[Transaction], user_id: int, year: int, month: int) -> List[Transaction]:
    return [t for t in transactions if t.user_id == user_id and in_month(t.date, year, month)]


# ---------------------------------------------------------------------------
# Aggregations
# ---------------------------------------------------------------------------


def summarize(transactions: Iterable[Transaction], user_id: int, year: int, month: int) -> DashboardSummary:
    """Income, expenses (as a positive number) and balance for one month."""
    scoped = _for_month(transactions, user_id, year, month)
    income = sum((t.amount for t in scoped if t.type == INCOME), ZERO)
    expenses = sum((abs(t.amount) for t in scoped if t.type == EXPENSE), ZERO)
    income, expenses = round_money(income), round_money(expenses)
    return DashboardSummary(income=income, expenses=expenses, balance=income - expenses)


def spending_by_category(
    transactions: Iterable[Transaction],
    categories: Mapping[int, Category],
    user_id: int,
    year: int,
    month: int,
) -> List[CategorySpending]:
    """Expense totals per category for one month, largest first.

    Transactions without a (known) category are folded into a single
    Uncategorized bucket, appended last and only when its total is
    nonzero.
    """
    expenses = [t for t in _for_month(transactions, user_id, year, month) if t.type == EXPENSE]
    if not expenses:
        return []

    df = _transactions_frame(expenses)
    refs: Dict[str, CategoryRef] = {}
    keys = []
    for t in expenses:
        ref = resolve_category(t.category_id, categories)
        key = _UNCATEGORIZED_KEY if ref.is_uncategorized else str(ref.id)
        refs[key] = ref
        keys.append(key)
    df['key'] = keys
    df['abs_cents'] = df['cents'].abs()
    totals = df.groupby('key', sort=False)['abs_cents'].sum()

    known = [
        CategorySpending(category=refs[key], amount=_from_cents(cents))
        for key, cents in totals.items()
        if key != _UNCATEGORIZED_KEY
    ]
    known.sort(key=lambda item: (-item.amount, item.category.name))

    uncategorized_cents = totals.get(_UNCATEGORIZED_KEY, 0)
    if uncategorized_cents:
        known.append(CategorySpending(category=refs[_UNCATEGORIZED_KEY], amount=_from_cents(uncategorized_cents)))
    return known


def monthly_trend(
    transactions: Iterable[Transaction],
    user_id: int,
    year: int,
    month: int,
    months: int = TREND_MONTHS,
) -> List[TrendPoint]:
    """Income and expense totals per calendar month.

    Covers the ``months`` months ending with (and including) the target
    month, oldest first.  Months without activity are zero-filled.
    """
    if months <= 0:
        return []
    periods = pd.period_range(end=pd.Period(year=year, month=month, freq='M'), periods=months, freq='M')
    scoped = [t for t in transactions if t.user_id == user_id]

    df = _transactions_frame(scoped)
    df['period'] = df['date'].dt.to_period('M')
    df = df[df['period'].isin(periods)].copy()
    df['income'] = np.where(df['type'] == INCOME, df['cents'], 0)
    df['expenses'] = np.where(df['type'] == EXPENSE, df['cents'].abs(), 0)

    grouped = (
        df.groupby('period')[['income', 'expenses']].sum()
        .reindex(periods, fill_value=0)
    )

    return [
        TrendPoint(
            year=period.year,
            month=period.month,
            income=_from_cents(row['income']),
            expenses=_from_cents(row['expenses']),
        )
        for period, row in grouped.iterrows()
    ]


def budget_progress_rows(
    budgets: Iterable[Budget],
    transactions: Sequence[Transaction],
    categories: Mapping[int, Category],
    user_id: int,
    year: int,
    month: int,
) -> List[BudgetProgressRow]:
    """Progress for each of the user's own budgets in the target month."""
    rows = []
    for budget in budgets:
        if budget.user_id != user_id or (budget.year, budget.month) != (year, month):
            continue
        progress = calculate_budget_progress(budget, expenses_for_budget(budget, transactions))
        rows.append(BudgetProgressRow(
            budget=budget,
            category=resolve_category(budget.category_id, categories),
            progress=progress,
        ))
    return rows


def merge_budgets(
    user_id: int,
    owned: Iterable[Budget],
    shared: Iterable[Budget],
    categories: Mapping[int, Category],
    users: Optional[Mapping[int, User]] = None,
) -> List[BudgetListing]:
    """Combine owned and shared budgets, newest period first.

    ``categories`` must also cover the categories of shared budgets, which
    belong to their owners.
    """
    users = users or {}
    listings = []
    for budget in list(owned) + list(shared):
        listings.append(listing_for(
            budget,
            user_id,
            resolve_category(budget.category_id, categories),
            owner=users.get(budget.user_id),
        ))
    return sorted(listings, key=lambda item: (item.budget.year, item.budget.month), reverse=True)


def recent_transactions(
    transactions: Iterable[Transaction],
    user_id: int,
    limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> List[Transaction]:
    own = [t for t in transactions if t.user_id == user_id]
    own.sort(key=lambda t: (t.date, t.id), reverse=True)
    return own[:limit]


def build_dashboard(
    user_id: int,
    year: int,
    month: int,
    transactions: Sequence[Transaction],
    categories: Iterable[Category],
    budgets: Iterable[Budget],
    shared_budgets: Iterable[Budget] = (),
    goals: Iterable[Goal] = (),
    users: Iterable[User] = (),
    trend_months: int = TREND_MONTHS,
) -> DashboardView:
    """Assemble the full dashboard view model for one user and month.

    Args:
        user_id: The user the dashboard is built for.
        year, month: Target period.
        transactions: The user's transactions; other users' rows are ignored.
        categories: Categories referenced by the transactions and by every
            budget passed in, including shared ones.
        budgets: Budgets owned by the user (any period).
        shared_budgets: Budgets shared with the user, with their shares.
        goals: The user's goals; only the target period is reported.
        users: Owners of shared budgets, for the ``shared_by`` tag.
        trend_months: Length of the trailing trend window.
    """
    transactions = list(transactions)
    budgets = list(budgets)
    categories_by_id: Dict[int, Category] = index_by_id(categories)

    goal_rows = [
        GoalProgressRow(goal=g, progress=goal_progress(g))
        for g in goals
        if g.user_id == user_id and (g.year, g.month) == (year, month)
    ]

    return DashboardView(
        user_id=user_id,
        year=year,
        month=month,
        summary=summarize(transactions, user_id, year, month),
        spending_by_category=spending_by_category(transactions, categories_by_id, user_id, year, month),
        monthly_trend=monthly_trend(transactions, user_id, year, month, trend_months),
        budget_progress=budget_progress_rows(budgets, transactions, categories_by_id, user_id, year, month),
        budgets=merge_budgets(user_id, budgets, shared_budgets, categories_by_id, index_by_id(users)),
        goals=goal_rows,
        recent_transactions=recent_transactions(transactions, user_id),
    )
