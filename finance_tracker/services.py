"""Application operations.

Each function takes the acting user's id explicitly, loads what it needs
from :mod:`finance_tracker.db`, applies the pure rules from the budget,
goal and sharing modules, and persists the outcome.  Errors are the
domain errors from :mod:`finance_tracker.errors`; records a user may not
see are reported as :class:`~finance_tracker.errors.NotFound`.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Union

from . import db
from .amounts import Number, round_money, signed_amount, validate_currency, validate_type
from .budgets import BudgetProgress, calculate_budget_progress, expenses_for_budget, month_window
from .config import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CURRENCY,
    NOTIFICATION_LIMIT,
    TREND_MONTHS,
    USER_SEARCH_LIMIT,
    USER_SEARCH_MIN_CHARS,
)
from .dashboard import DashboardView, build_dashboard, merge_budgets
from .errors import Forbidden, InvalidAmount, InvalidRequest, NotFound
from .goals import GoalUpdate, achieved_notification, apply_contribution, new_goal
from .goals import update_goal as edit_goal
from .models import (
    Budget,
    BudgetShare,
    Category,
    Goal,
    Notification,
    Transaction,
    User,
    index_by_id,
    resolve_category,
)
from .sharing import (
    BudgetListing,
    ShareRemoval,
    check_new_share,
    ensure_can_delete,
    ensure_can_edit,
    ensure_can_manage_shares,
    ensure_can_remove_share,
    ensure_can_view,
    listing_for,
    share_notification,
)

logger = logging.getLogger(__name__)

# Marks an optional field the caller did not pass, as opposed to None
_KEEP = object()

DateLike = Union[date, datetime, str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coerce_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidRequest(f"Invalid date: {value!r}") from None


def _check_period(year: int, month: int) -> None:
    try:
        month_window(int(year), int(month))
    except ValueError:
        raise InvalidRequest(f"Invalid month: {month}") from None


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _authorize(check, budget: Budget, actor_id: int, *args):
    """Run a sharing permission check, logging denials."""
    try:
        return check(budget, *args, actor_id)
    except (Forbidden, NotFound) as exc:
        logger.warning("User %s denied on budget %s: %s", actor_id, budget.id, exc.message)
        raise


def _require_user(user_id: int) -> User:
    user = db.fetch_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def register_user(email: str, name: Optional[str] = None) -> User:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise InvalidRequest("A valid email address is required")
    if db.fetch_user_by_email(email) is not None:
        raise InvalidRequest("Email already registered")
    user = db.insert_user(email, _clean_text(name))
    logger.info("Registered user %s", user.id)
    return user


def search_users(actor_id: int, query: str) -> List[User]:
    """Find other users by email or name for the share dialog."""
    query = (query or "").strip()
    if len(query) < USER_SEARCH_MIN_CHARS:
        raise InvalidRequest(f"Query must be at least {USER_SEARCH_MIN_CHARS} characters")
    return db.search_users(query, actor_id, USER_SEARCH_LIMIT)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def _owned_category(actor_id: int, category_id: int) -> Category:
    category = db.fetch_category(category_id)
    if category is None or category.user_id != actor_id:
        raise NotFound("Category not found")
    return category


def list_categories(actor_id: int) -> List[Category]:
    return db.fetch_categories(actor_id)


def create_category(actor_id: int, name: str, color: Optional[str] = None) -> Category:
    name = _clean_text(name)
    if not name:
        raise InvalidRequest("Category name is required")
    category = db.insert_category(actor_id, name, color or DEFAULT_CATEGORY_COLOR)
    logger.info("User %s created category %s", actor_id, category.id)
    return category


def update_category(
    actor_id: int,
    category_id: int,
    name: Optional[str] = None,
    color: Optional[str] = None,
) -> Category:
    category = _owned_category(actor_id, category_id)
    if name is not None:
        name = _clean_text(name)
        if not name:
            raise InvalidRequest("Category name is required")
    updated = Category(
        id=category.id,
        user_id=category.user_id,
        name=name or category.name,
        color=color or category.color,
    )
    return db.update_category(updated)


def delete_category(actor_id: int, category_id: int) -> None:
    """Delete a category.

    Its transactions become uncategorized and its budgets are removed.
    """
    _owned_category(actor_id, category_id)
    db.delete_category(category_id)
    logger.info("User %s deleted category %s", actor_id, category_id)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _owned_transaction(actor_id: int, transaction_id: int) -> Transaction:
    txn = db.fetch_transaction(transaction_id)
    if txn is None or txn.user_id != actor_id:
        raise NotFound("Transaction not found")
    return txn


def list_transactions(
    actor_id: int,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    category_id: Optional[int] = None,
) -> List[Transaction]:
    """List the actor's transactions, newest first; ``end_date`` is exclusive."""
    return db.fetch_transactions(
        actor_id,
        start_date=_coerce_date(start_date) if start_date else None,
        end_date=_coerce_date(end_date) if end_date else None,
        category_id=category_id,
    )


def get_transaction(actor_id: int, transaction_id: int) -> Transaction:
    return _owned_transaction(actor_id, transaction_id)


def create_transaction(
    actor_id: int,
    raw_amount: Number,
    txn_type: str,
    txn_date: DateLike,
    currency: str = DEFAULT_CURRENCY,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
    merchant: Optional[str] = None,
) -> Transaction:
    """Record a transaction from a positive amount and a type.

    Raises:
        InvalidAmount: amount is not a non-negative number.
        InvalidType: type is not income or expense.
        UnsupportedCurrency: currency is not supported.
        NotFound: category does not belong to the actor.
    """
    amount = signed_amount(raw_amount, txn_type)
    currency = validate_currency(currency)
    if category_id is not None:
        _owned_category(actor_id, category_id)
    txn = db.insert_transaction(
        actor_id,
        amount,
        txn_type,
        _coerce_date(txn_date),
        currency,
        category_id=category_id,
        description=_clean_text(description),
        merchant=_clean_text(merchant),
    )
    logger.debug("User %s recorded %s transaction %s", actor_id, txn_type, txn.id)
    return txn


def update_transaction(
    actor_id: int,
    transaction_id: int,
    raw_amount: Optional[Number] = None,
    txn_type: Optional[str] = None,
    txn_date: Optional[DateLike] = None,
    currency: Optional[str] = None,
    category_id=_KEEP,
    description=_KEEP,
    merchant=_KEEP,
) -> Transaction:
    """Change fields of a transaction; omitted fields are kept.

    ``raw_amount`` is positive as on creation.  Changing only the type
    re-signs the stored amount.
    """
    txn = _owned_transaction(actor_id, transaction_id)
    new_type = validate_type(txn_type) if txn_type is not None else txn.type
    raw = raw_amount if raw_amount is not None else abs(txn.amount)
    if category_id is not _KEEP and category_id is not None:
        _owned_category(actor_id, category_id)

    updated = Transaction(
        id=txn.id,
        user_id=txn.user_id,
        amount=signed_amount(raw, new_type),
        type=new_type,
        date=_coerce_date(txn_date) if txn_date is not None else txn.date,
        currency=validate_currency(currency) if currency is not None else txn.currency,
        category_id=txn.category_id if category_id is _KEEP else category_id,
        description=txn.description if description is _KEEP else _clean_text(description),
        merchant=txn.merchant if merchant is _KEEP else _clean_text(merchant),
    )
    return db.update_transaction(updated)


def delete_transaction(actor_id: int, transaction_id: int) -> None:
    _owned_transaction(actor_id, transaction_id)
    db.delete_transaction(transaction_id)


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


def _load_budget(budget_id: int) -> Budget:
    budget = db.fetch_budget(budget_id)
    if budget is None:
        raise NotFound("Budget not found")
    return budget


def _positive_amount(value: Number, label: str) -> Decimal:
    amount = round_money(value)
    if amount <= 0:
        raise InvalidAmount(f"{label} must be a positive number")
    return amount


def list_budgets(actor_id: int) -> List[BudgetListing]:
    """Owned and shared budgets merged, newest period first."""
    owned = db.fetch_budgets(actor_id)
    shared = db.fetch_shared_budgets(actor_id)
    categories = db.fetch_categories_by_ids(b.category_id for b in owned + shared)
    owners = db.fetch_users(b.user_id for b in shared)
    return merge_budgets(actor_id, owned, shared, index_by_id(categories), index_by_id(owners))


def get_budget(actor_id: int, budget_id: int) -> BudgetListing:
    budget = _load_budget(budget_id)
    _authorize(ensure_can_view, budget, actor_id)
    category = db.fetch_category(budget.category_id)
    categories = {category.id: category} if category else {}
    return listing_for(
        budget,
        actor_id,
        resolve_category(budget.category_id, categories),
        owner=db.fetch_user(budget.user_id),
    )


def budget_progress(actor_id: int, budget_id: int) -> BudgetProgress:
    """Spend-vs-budget for any budget the actor can see.

    Spending is always the owner's, also when viewed through a share.
    """
    budget = _load_budget(budget_id)
    _authorize(ensure_can_view, budget, actor_id)
    start, end = month_window(budget.year, budget.month)
    transactions = db.fetch_transactions(
        budget.user_id, start_date=start, end_date=end, category_id=budget.category_id
    )
    return calculate_budget_progress(budget, expenses_for_budget(budget, transactions))


def create_budget(actor_id: int, category_id: int, amount: Number, month: int, year: int) -> Budget:
    """Create a monthly budget for one of the actor's categories.

    Raises:
        NotFound: the category is not the actor's.
        InvalidAmount: amount is not positive.
        InvalidRequest: month is outside 1..12.
        DuplicateBudget: a budget for that category and month exists.
    """
    _owned_category(actor_id, category_id)
    value = _positive_amount(amount, "Budget amount")
    _check_period(year, month)
    budget = db.insert_budget(actor_id, category_id, value, int(month), int(year))
    logger.info("User %s created budget %s for %04d-%02d", actor_id, budget.id, budget.year, budget.month)
    return budget


def update_budget(
    actor_id: int,
    budget_id: int,
    amount: Optional[Number] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> Budget:
    budget = _load_budget(budget_id)
    _authorize(ensure_can_edit, budget, actor_id)
    value = _positive_amount(amount, "Budget amount") if amount is not None else budget.amount
    new_month = int(month) if month is not None else budget.month
    new_year = int(year) if year is not None else budget.year
    _check_period(new_year, new_month)
    updated = db.update_budget(budget_id, value, new_month, new_year)
    logger.info("User %s updated budget %s", actor_id, budget_id)
    return updated


def delete_budget(actor_id: int, budget_id: int) -> None:
    budget = _load_budget(budget_id)
    _authorize(ensure_can_delete, budget, actor_id)
    db.delete_budget(budget_id)
    logger.info("User %s deleted budget %s", actor_id, budget_id)


# ---------------------------------------------------------------------------
# Budget shares
# ---------------------------------------------------------------------------


def _budget_share(budget: Budget, share_id: int) -> BudgetShare:
    share = db.fetch_share(share_id)
    if share is None or share.budget_id != budget.id:
        raise NotFound("Share not found")
    return share


def share_budget(actor_id: int, budget_id: int, email: str, can_edit: bool = False) -> BudgetShare:
    """Share a budget with the user registered under ``email``.

    The grantee receives exactly one ``budget_shared`` notification.

    Raises:
        NotFound: the budget is not visible to the actor or no user has
            that email.
        Forbidden: the actor can see the budget but is not its owner.
        SelfShare: the email is the owner's.
        DuplicateShare: the user already has access.
    """
    budget = _load_budget(budget_id)
    _authorize(ensure_can_manage_shares, budget, actor_id)

    target = db.fetch_user_by_email((email or "").strip().lower())
    if target is None:
        raise NotFound("User not found")
    check_new_share(budget, target.id, actor_id)

    owner = _require_user(actor_id)
    category = db.fetch_category(budget.category_id)
    category_name = resolve_category(budget.category_id, {category.id: category} if category else {}).name
    notification = share_notification(owner, category_name, budget, target.id, bool(can_edit))

    share = db.insert_share(budget.id, target.id, can_edit, notification=notification)
    logger.info("User %s shared budget %s with user %s (edit=%s)", actor_id, budget.id, target.id, share.can_edit)
    return share


def list_shares(actor_id: int, budget_id: int) -> List[BudgetShare]:
    budget = _load_budget(budget_id)
    _authorize(ensure_can_manage_shares, budget, actor_id)
    return db.fetch_shares(budget_id)


def update_share(actor_id: int, budget_id: int, share_id: int, can_edit: bool) -> BudgetShare:
    budget = _load_budget(budget_id)
    _authorize(ensure_can_manage_shares, budget, actor_id)
    _budget_share(budget, share_id)
    return db.update_share(share_id, can_edit)


def remove_share(actor_id: int, budget_id: int, share_id: int) -> ShareRemoval:
    """Revoke a share (owner) or leave a shared budget (grantee)."""
    budget = _load_budget(budget_id)
    _authorize(ensure_can_view, budget, actor_id)
    share = _budget_share(budget, share_id)
    removal = _authorize(ensure_can_remove_share, budget, actor_id, share)
    db.delete_share(share_id)
    logger.info("Share %s on budget %s removed by user %s (%s)", share_id, budget_id, actor_id, removal.value)
    return removal


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def _owned_goal(actor_id: int, goal_id: int) -> Goal:
    goal = db.fetch_goal(goal_id)
    if goal is None or goal.user_id != actor_id:
        raise NotFound("Goal not found")
    return goal


def _persist_goal_update(update: GoalUpdate) -> GoalUpdate:
    notification = achieved_notification(update.event) if update.event is not None else None
    db.save_goal(update.goal, notification=notification)
    if update.event is not None:
        logger.info("Goal %s achieved by user %s", update.event.goal_id, update.event.user_id)
    return update


def list_goals(actor_id: int, year: Optional[int] = None, month: Optional[int] = None) -> List[Goal]:
    return db.fetch_goals(actor_id, year=year, month=month)


def create_goal(actor_id: int, title: str, target_amount: Number, month: int, year: int) -> Goal:
    goal = new_goal(actor_id, title, target_amount, month, year)
    stored = db.insert_goal(goal)
    logger.info("User %s created goal %s", actor_id, stored.id)
    return stored


def contribute_to_goal(actor_id: int, goal_id: int, delta: Number, now: Optional[datetime] = None) -> GoalUpdate:
    goal = _owned_goal(actor_id, goal_id)
    return _persist_goal_update(apply_contribution(goal, delta, now=now))


def update_goal(
    actor_id: int,
    goal_id: int,
    current_amount: Optional[Number] = None,
    completed: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> GoalUpdate:
    goal = _owned_goal(actor_id, goal_id)
    return _persist_goal_update(edit_goal(goal, current_amount=current_amount, completed=completed, now=now))


def delete_goal(actor_id: int, goal_id: int) -> None:
    _owned_goal(actor_id, goal_id)
    db.delete_goal(goal_id)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def list_notifications(actor_id: int, limit: int = NOTIFICATION_LIMIT) -> List[Notification]:
    return db.fetch_notifications(actor_id, min(limit, NOTIFICATION_LIMIT))


def get_notification(actor_id: int, notification_id: int) -> Notification:
    notification = db.fetch_notification(notification_id)
    if notification is None or notification.user_id != actor_id:
        raise NotFound("Notification not found")
    return notification


def mark_notifications(actor_id: int, notification_ids: Iterable[int], read: bool = True) -> int:
    """Set the read flag on several notifications at once.

    Every id must belong to the actor; otherwise nothing is changed.
    """
    ids: Sequence[int] = sorted(set(notification_ids))
    if not ids:
        raise InvalidRequest("No notification ids given")
    if db.count_owned_notifications(actor_id, ids) != len(ids):
        raise NotFound("Notification not found")
    return db.set_notifications_read(actor_id, ids, read)


def mark_notification(actor_id: int, notification_id: int, read: bool = True) -> Notification:
    get_notification(actor_id, notification_id)
    db.set_notifications_read(actor_id, [notification_id], read)
    return db.fetch_notification(notification_id)


def delete_notification(actor_id: int, notification_id: int) -> None:
    get_notification(actor_id, notification_id)
    db.delete_notification(notification_id)


def unread_count(actor_id: int) -> int:
    return db.count_unread(actor_id)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def dashboard(actor_id: int, year: int, month: int, trend_months: int = TREND_MONTHS) -> DashboardView:
    """Load the actor's records and build the dashboard for one month."""
    _require_user(actor_id)
    _check_period(year, month)

    transactions = db.fetch_transactions(actor_id)
    owned = db.fetch_budgets(actor_id)
    shared = db.fetch_shared_budgets(actor_id)
    categories = db.fetch_categories(actor_id)
    own_ids = {c.id for c in categories}
    categories += db.fetch_categories_by_ids(b.category_id for b in shared if b.category_id not in own_ids)

    return build_dashboard(
        user_id=actor_id,
        year=int(year),
        month=int(month),
        transactions=transactions,
        categories=categories,
        budgets=owned,
        shared_budgets=shared,
        goals=db.fetch_goals(actor_id, year=int(year), month=int(month)),
        users=db.fetch_users(b.user_id for b in shared),
        trend_months=trend_months,
    )
