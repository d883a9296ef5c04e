"""End-to-end tests of the application operations on a temporary database."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker import db, services
from finance_tracker.errors import (
    DuplicateBudget,
    DuplicateGoal,
    DuplicateShare,
    Forbidden,
    InvalidAmount,
    InvalidRequest,
    NotFound,
    SelfShare,
)
from finance_tracker.sharing import ShareRemoval


@pytest.fixture
def household(store):
    owner = services.register_user("Alex@Example.com", "Alex")
    viewer = services.register_user("sam@example.com", "Sam")
    editor = services.register_user("kim@example.com", "Kim")
    stranger = services.register_user("lee@example.com")
    groceries = services.create_category(owner.id, "Groceries", "#10B981")
    budget = services.create_budget(owner.id, groceries.id, "300", 3, 2024)
    return owner, viewer, editor, stranger, groceries, budget


def test_register_normalises_email_and_rejects_duplicates(store):
    user = services.register_user("  Alex@Example.COM ", "Alex")
    assert user.email == "alex@example.com"
    with pytest.raises(InvalidRequest):
        services.register_user("alex@example.com")
    with pytest.raises(InvalidRequest):
        services.register_user("not-an-email")


def test_search_users(household):
    owner, viewer, editor, stranger, _, _ = household
    with pytest.raises(InvalidRequest):
        services.search_users(owner.id, "s")
    assert [u.id for u in services.search_users(owner.id, "SAM")] == [viewer.id]
    found = services.search_users(owner.id, "example.com")
    assert owner.id not in [u.id for u in found]
    assert len(found) == 3


def test_transactions_are_signed_and_private(household):
    owner, viewer, _, _, groceries, _ = household
    txn = services.create_transaction(owner.id, "45.50", "expense", "2024-03-05", category_id=groceries.id)
    assert txn.amount == Decimal("-45.50")
    assert txn.currency == "GBP"

    flipped = services.update_transaction(owner.id, txn.id, txn_type="income")
    assert flipped.amount == Decimal("45.50")
    cleared = services.update_transaction(owner.id, txn.id, category_id=None)
    assert cleared.category_id is None

    with pytest.raises(NotFound):
        services.get_transaction(viewer.id, txn.id)
    with pytest.raises(NotFound):
        services.create_transaction(viewer.id, "5", "expense", date(2024, 3, 5), category_id=groceries.id)
    with pytest.raises(InvalidRequest):
        services.create_transaction(owner.id, "5", "expense", "yesterday")


def test_budget_validation(household):
    owner, _, _, _, groceries, _ = household
    with pytest.raises(DuplicateBudget):
        services.create_budget(owner.id, groceries.id, "250", 3, 2024)
    with pytest.raises(InvalidAmount):
        services.create_budget(owner.id, groceries.id, "0", 4, 2024)
    with pytest.raises(InvalidRequest):
        services.create_budget(owner.id, groceries.id, "100", 13, 2024)


def test_view_only_share_scenario(household):
    owner, viewer, _, stranger, _, budget = household

    share = services.share_budget(owner.id, budget.id, "SAM@example.com", can_edit=False)

    notifications = services.list_notifications(viewer.id)
    assert len(notifications) == 1
    assert notifications[0].type == "budget_shared"
    assert notifications[0].message == 'Alex shared the "Groceries" budget with you (view only).'
    assert notifications[0].data["budgetId"] == budget.id

    listing = services.list_budgets(viewer.id)
    assert [item.budget.id for item in listing] == [budget.id]
    assert listing[0].is_shared
    assert not listing[0].can_edit
    assert listing[0].shared_by.id == owner.id

    with pytest.raises(Forbidden):
        services.update_budget(viewer.id, budget.id, amount="500")
    with pytest.raises(Forbidden):
        services.delete_budget(viewer.id, budget.id)
    with pytest.raises(NotFound):
        services.update_budget(stranger.id, budget.id, amount="500")
    with pytest.raises(NotFound):
        services.get_budget(stranger.id, budget.id)

    assert services.remove_share(viewer.id, budget.id, share.id) is ShareRemoval.LEAVE
    with pytest.raises(NotFound):
        services.get_budget(viewer.id, budget.id)


def test_share_errors(household):
    owner, viewer, editor, _, _, budget = household
    with pytest.raises(SelfShare):
        services.share_budget(owner.id, budget.id, "alex@example.com")
    with pytest.raises(NotFound):
        services.share_budget(owner.id, budget.id, "nobody@example.com")

    services.share_budget(owner.id, budget.id, viewer.email)
    with pytest.raises(DuplicateShare):
        services.share_budget(owner.id, budget.id, viewer.email, can_edit=True)
    assert len(services.list_notifications(viewer.id)) == 1

    services.share_budget(owner.id, budget.id, editor.email, can_edit=True)
    with pytest.raises(Forbidden):
        services.share_budget(editor.id, budget.id, "lee@example.com")
    with pytest.raises(Forbidden):
        services.list_shares(editor.id, budget.id)


def test_editor_can_change_amount_but_not_delete(household):
    owner, _, editor, _, _, budget = household
    share = services.share_budget(owner.id, budget.id, editor.email, can_edit=True)

    updated = services.update_budget(editor.id, budget.id, amount="450")

    assert updated.amount == Decimal("450.00")
    with pytest.raises(Forbidden):
        services.delete_budget(editor.id, budget.id)

    services.update_share(owner.id, budget.id, share.id, can_edit=False)
    with pytest.raises(Forbidden):
        services.update_budget(editor.id, budget.id, amount="500")

    assert services.remove_share(owner.id, budget.id, share.id) is ShareRemoval.REVOKE
    assert services.list_shares(owner.id, budget.id) == []


def test_budget_progress_uses_owner_spending(household):
    owner, viewer, _, _, groceries, budget = household
    for amount in ("45.50", "20.00", "18.75"):
        services.create_transaction(owner.id, amount, "expense", date(2024, 3, 10), category_id=groceries.id)
    services.share_budget(owner.id, budget.id, viewer.email)

    progress = services.budget_progress(viewer.id, budget.id)

    assert progress.spent == Decimal("84.25")
    assert progress.remaining == Decimal("215.75")
    assert progress.percentage == Decimal("28.08")
    assert progress.status == "good"


def test_goal_achievement_notifies_once(household):
    owner = household[0]
    goal = services.create_goal(owner.id, "Holiday fund", "1000", 3, 2024)
    with pytest.raises(DuplicateGoal):
        services.create_goal(owner.id, "Holiday fund", "500", 3, 2024)

    first = services.contribute_to_goal(owner.id, goal.id, "850")
    assert first.event is None

    second = services.contribute_to_goal(owner.id, goal.id, "200")
    assert second.goal.current_amount == Decimal("1000.00")
    assert second.goal.completed
    assert second.event is not None

    services.contribute_to_goal(owner.id, goal.id, "50")

    notifications = services.list_notifications(owner.id)
    assert [n.title for n in notifications] == ["Goal Achieved! 🎉"]
    assert notifications[0].data == {"goalId": goal.id}
    assert services.list_goals(owner.id, 2024, 3)[0].completed


def test_manual_recompletion_notifies_again(household):
    owner = household[0]
    goal = services.create_goal(owner.id, "Car", "500", 3, 2024)

    services.update_goal(owner.id, goal.id, current_amount="500")
    reopened = services.update_goal(owner.id, goal.id, completed=False)
    assert reopened.goal.completed_at is None
    services.update_goal(owner.id, goal.id, completed=True)

    assert services.unread_count(owner.id) == 2


def test_goals_are_private(household):
    owner, viewer = household[0], household[1]
    goal = services.create_goal(owner.id, "Car", "500", 3, 2024)
    with pytest.raises(NotFound):
        services.contribute_to_goal(viewer.id, goal.id, "10")
    with pytest.raises(NotFound):
        services.delete_goal(viewer.id, goal.id)


def test_marking_notifications(household):
    owner, viewer, _, _, _, budget = household
    services.share_budget(owner.id, budget.id, viewer.email)
    goal = services.create_goal(owner.id, "Car", "100", 3, 2024)
    services.contribute_to_goal(owner.id, goal.id, "100")

    own = services.list_notifications(owner.id)[0]
    foreign = services.list_notifications(viewer.id)[0]

    with pytest.raises(NotFound):
        services.mark_notifications(owner.id, [own.id, foreign.id])
    assert services.unread_count(owner.id) == 1

    assert services.mark_notifications(owner.id, [own.id]) == 1
    assert services.unread_count(owner.id) == 0
    assert not services.mark_notification(owner.id, own.id, read=False).read

    with pytest.raises(NotFound):
        services.delete_notification(owner.id, foreign.id)
    services.delete_notification(viewer.id, foreign.id)
    assert services.list_notifications(viewer.id) == []


def test_dashboard_combines_owned_and_shared(household):
    owner, viewer, _, _, groceries, budget = household
    services.create_transaction(owner.id, "2500", "income", date(2024, 3, 1))
    for amount in ("45.50", "20.00", "18.75"):
        services.create_transaction(owner.id, amount, "expense", date(2024, 3, 10), category_id=groceries.id)
    services.create_transaction(owner.id, "12.00", "expense", date(2024, 3, 11))
    services.share_budget(owner.id, budget.id, viewer.email)

    view = services.dashboard(owner.id, 2024, 3)
    assert view.summary.expenses == Decimal("96.25")
    assert [s.category.name for s in view.spending_by_category] == ["Groceries", "Uncategorized"]
    assert view.budget_progress[0].progress.spent == Decimal("84.25")

    shared_view = services.dashboard(viewer.id, 2024, 3)
    assert shared_view.summary.expenses == 0
    assert shared_view.budget_progress == []
    assert [b.category.name for b in shared_view.budgets] == ["Groceries"]
    assert shared_view.budgets[0].shared_by.email == "alex@example.com"

    with pytest.raises(InvalidRequest):
        services.dashboard(owner.id, 2024, 0)


def _failing_notification_insert(*args, **kwargs):
    raise RuntimeError("notification store unavailable")


def test_share_is_not_kept_without_its_notification(household, monkeypatch):
    owner, viewer, _, _, _, budget = household
    insert_notification = db._insert_notification
    monkeypatch.setattr(db, "_insert_notification", _failing_notification_insert)

    with pytest.raises(RuntimeError):
        services.share_budget(owner.id, budget.id, viewer.email)
    assert db.fetch_shares(budget.id) == []

    monkeypatch.setattr(db, "_insert_notification", insert_notification)
    share = services.share_budget(owner.id, budget.id, viewer.email)
    assert db.fetch_shares(budget.id) == [share]
    assert len(services.list_notifications(viewer.id)) == 1


def test_goal_completion_is_not_kept_without_its_notification(household, monkeypatch):
    owner = household[0]
    goal = services.create_goal(owner.id, "Car", "100", 3, 2024)
    insert_notification = db._insert_notification
    monkeypatch.setattr(db, "_insert_notification", _failing_notification_insert)

    with pytest.raises(RuntimeError):
        services.contribute_to_goal(owner.id, goal.id, "100")
    assert not db.fetch_goal(goal.id).completed

    monkeypatch.setattr(db, "_insert_notification", insert_notification)
    retried = services.contribute_to_goal(owner.id, goal.id, "100")
    assert retried.event is not None
    assert [n.type for n in services.list_notifications(owner.id)] == ["goal_achieved"]
