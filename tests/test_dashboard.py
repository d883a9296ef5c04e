from datetime import date
from decimal import Decimal

from finance_tracker.dashboard import (
    build_dashboard,
    merge_budgets,
    monthly_trend,
    recent_transactions,
    spending_by_category,
    summarize,
)
from finance_tracker.models import Budget, BudgetShare, Category, Goal, Transaction, User, index_by_id

USER = 1
GROCERIES = Category(id=10, user_id=USER, name="Groceries", color="#10B981")
RENT = Category(id=11, user_id=USER, name="Rent", color="#3B82F6")
FUN = Category(id=12, user_id=USER, name="Fun", color="#F59E0B")
CATEGORIES = index_by_id([GROCERIES, RENT, FUN])


def _txn(txn_id, amount, txn_type="expense", when=date(2024, 3, 5), category_id=None, user_id=USER):
    value = Decimal(amount)
    return Transaction(
        id=txn_id,
        user_id=user_id,
        amount=-value if txn_type == "expense" else value,
        type=txn_type,
        date=when,
        category_id=category_id,
    )


def _march_transactions():
    return [
        _txn(1, "2500", "income", date(2024, 3, 1)),
        _txn(2, "45.50", category_id=10),
        _txn(3, "20.00", category_id=10),
        _txn(4, "18.75", category_id=10),
        _txn(5, "950.00", category_id=11),
        _txn(6, "12.00"),
        _txn(7, "99.00", when=date(2024, 2, 10), category_id=12),
        _txn(8, "500.00", user_id=2, category_id=10),
    ]


def test_summary_for_month():
    summary = summarize(_march_transactions(), USER, 2024, 3)
    assert summary.income == Decimal("2500.00")
    assert summary.expenses == Decimal("1046.25")
    assert summary.balance == Decimal("1453.75")


def test_spending_by_category_sorted_with_uncategorized_last():
    spending = spending_by_category(_march_transactions(), CATEGORIES, USER, 2024, 3)

    assert [(s.category.name, s.amount) for s in spending] == [
        ("Rent", Decimal("950.00")),
        ("Groceries", Decimal("84.25")),
        ("Uncategorized", Decimal("12.00")),
    ]
    assert spending[-1].category.id is None
    assert spending[-1].category.color == "#6B7280"


def test_spending_without_uncategorized_bucket():
    txns = [_txn(1, "10", category_id=10), _txn(2, "10", category_id=12)]
    spending = spending_by_category(txns, CATEGORIES, USER, 2024, 3)
    assert [s.category.name for s in spending] == ["Fun", "Groceries"]


def test_unknown_category_counts_as_uncategorized():
    spending = spending_by_category([_txn(1, "7.50", category_id=99)], CATEGORIES, USER, 2024, 3)
    assert [(s.category.name, s.amount) for s in spending] == [("Uncategorized", Decimal("7.50"))]


def test_monthly_trend_is_zero_filled_and_crosses_years():
    txns = [
        _txn(1, "100", "income", date(2023, 11, 30)),
        _txn(2, "40", when=date(2024, 1, 1)),
        _txn(3, "60", when=date(2024, 3, 31)),
        _txn(4, "999", when=date(2023, 9, 30)),
        _txn(5, "999", when=date(2024, 4, 1)),
    ]

    trend = monthly_trend(txns, USER, 2024, 3, months=6)

    assert [p.label for p in trend] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert [p.income for p in trend] == [Decimal("0.00"), Decimal("100.00")] + [Decimal("0.00")] * 4
    assert [p.expenses for p in trend] == [
        Decimal("0.00"),
        Decimal("0.00"),
        Decimal("0.00"),
        Decimal("40.00"),
        Decimal("0.00"),
        Decimal("60.00"),
    ]


def test_trend_for_user_without_transactions():
    trend = monthly_trend([], USER, 2024, 3)
    assert len(trend) == 6
    assert all(p.income == 0 and p.expenses == 0 for p in trend)


def test_merge_budgets_newest_first_and_tagged():
    owner = User(id=2, email="sam@example.com", name="Sam")
    sams_category = Category(id=20, user_id=2, name="Household", color="#000000")
    feb = Budget(id=1, user_id=USER, category_id=10, amount=Decimal("300"), month=2, year=2024)
    mar = Budget(id=2, user_id=USER, category_id=10, amount=Decimal("300"), month=3, year=2024)
    shared = Budget(
        id=3,
        user_id=2,
        category_id=20,
        amount=Decimal("200"),
        month=3,
        year=2024,
        shares=(BudgetShare(id=8, budget_id=3, user_id=USER, can_edit=True),),
    )
    categories = {**CATEGORIES, 20: sams_category}

    listings = merge_budgets(USER, [feb, mar], [shared], categories, {2: owner})

    assert [item.budget.id for item in listings] == [2, 3, 1]
    shared_item = listings[1]
    assert shared_item.is_shared
    assert shared_item.can_edit
    assert not shared_item.can_delete
    assert shared_item.shared_by == owner
    assert shared_item.category.name == "Household"
    assert not listings[0].is_shared


def test_recent_transactions_limit_and_order():
    txns = _march_transactions()
    recent = recent_transactions(txns, USER, limit=5)
    assert len(recent) == 5
    assert all(t.user_id == USER for t in recent)
    assert [t.id for t in recent] == [6, 5, 4, 3, 2]
    assert recent_transactions(txns, USER, limit=7)[-2:] == [txns[0], txns[6]]


def test_build_dashboard_end_to_end():
    groceries_budget = Budget(id=1, user_id=USER, category_id=10, amount=Decimal("300"), month=3, year=2024)
    old_budget = Budget(id=2, user_id=USER, category_id=12, amount=Decimal("50"), month=2, year=2024)
    goal = Goal(
        id=1,
        user_id=USER,
        title="Holiday",
        target_amount=Decimal("1000"),
        current_amount=Decimal("850"),
        month=3,
        year=2024,
    )
    other_month_goal = Goal(
        id=2,
        user_id=USER,
        title="Holiday",
        target_amount=Decimal("1000"),
        current_amount=Decimal("0"),
        month=2,
        year=2024,
    )

    view = build_dashboard(
        USER,
        2024,
        3,
        transactions=_march_transactions(),
        categories=[GROCERIES, RENT, FUN],
        budgets=[groceries_budget, old_budget],
        goals=[goal, other_month_goal],
    )

    assert view.summary.balance == Decimal("1453.75")
    assert len(view.budget_progress) == 1
    row = view.budget_progress[0]
    assert row.category.name == "Groceries"
    assert row.progress.spent == Decimal("84.25")
    assert row.progress.status == "good"
    assert [b.budget.id for b in view.budgets] == [1, 2]
    assert [g.goal.id for g in view.goals] == [1]
    assert view.goals[0].progress.status == "close"
    assert len(view.recent_transactions) == 5
    assert view.has_spending and view.has_trend

    frame = view.trend_frame()
    assert list(frame.columns) == ["Month", "Income", "Expenses"]
    assert frame.iloc[-1]["Income"] == 2500.0
    assert list(view.spending_frame()["Category"]) == ["Rent", "Groceries", "Uncategorized"]


def test_empty_dashboard():
    view = build_dashboard(USER, 2024, 3, transactions=[], categories=[], budgets=[])
    assert view.summary.income == 0 and view.summary.expenses == 0 and view.summary.balance == 0
    assert view.spending_by_category == []
    assert not view.has_spending
    assert not view.has_trend
    assert view.budget_progress == [] and view.budgets == [] and view.goals == []
