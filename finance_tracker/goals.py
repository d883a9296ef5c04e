"""Savings goal progress tracking."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from .amounts import ZERO, Number, round_money, to_decimal
from .errors import InvalidAmount, InvalidRequest
from .models import Goal, NotificationDraft

GOAL_ACHIEVED = "goal_achieved"

# Display tiers
COMPLETED = "completed"
CLOSE = "close"
IN_PROGRESS = "in_progress"
CLOSE_THRESHOLD = Decimal("80")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class GoalAchieved:
    """Emitted once when a goal crosses its target."""

    goal_id: int
    user_id: int
    title: str
    achieved_at: datetime


@dataclass(frozen=True)
class GoalUpdate:
    goal: Goal
    event: Optional[GoalAchieved] = None


@dataclass(frozen=True)
class GoalProgress:
    current_amount: Decimal
    completed: bool
    percentage: Decimal
    display_percentage: Decimal
    remaining: Decimal
    status: str


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def new_goal(user_id: int, title: str, target_amount: Number, month: int, year: int, goal_id: int = 0) -> Goal:
    """Validate and build a fresh, empty goal."""
    title = (title or "").strip()
    if not title:
        raise InvalidRequest("Goal title is required")
    if not 1 <= int(month) <= 12:
        raise InvalidRequest(f"Invalid month: {month}")
    target = round_money(target_amount)
    if target <= 0:
        raise InvalidAmount("Target amount must be a positive number")
    return Goal(
        id=goal_id,
        user_id=user_id,
        title=title,
        target_amount=target,
        current_amount=ZERO,
        month=int(month),
        year=int(year),
    )


def _transition(goal: Goal, current: Decimal, completed: bool, now: Optional[datetime]) -> GoalUpdate:
    event = None
    completed_at = goal.completed_at
    if completed and not goal.completed:
        completed_at = _now(now)
        event = GoalAchieved(
            goal_id=goal.id,
            user_id=goal.user_id,
            title=goal.title,
            achieved_at=completed_at,
        )
    elif not completed and goal.completed:
        # already-sent notifications are left in place
        completed_at = None
    updated = replace(goal, current_amount=current, completed=completed, completed_at=completed_at)
    return GoalUpdate(goal=updated, event=event)


def apply_contribution(goal: Goal, delta: Number, now: Optional[datetime] = None) -> GoalUpdate:
    """Add ``delta`` to the goal's saved amount.

    The new amount is clamped to ``[0, target_amount]``.  Negative deltas
    are accepted for corrections.  A :class:`GoalAchieved` event is
    returned only on the false -> true completion transition, so a
    zero delta or repeated contributions after completion emit nothing.
    """
    delta = round_money(delta)
    target = to_decimal(goal.target_amount)
    current = max(ZERO, min(target, to_decimal(goal.current_amount) + delta))
    completed = current >= target
    return _transition(goal, round_money(current), completed, now)


def update_goal(
    goal: Goal,
    current_amount: Optional[Number] = None,
    completed: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> GoalUpdate:
    """Apply a manual edit of the saved amount and/or completion flag.

    An explicit ``completed`` value wins.  When it is omitted, reaching
    the target marks the goal completed but falling below it does not
    un-complete it.  Un-completing clears ``completed_at``.
    """
    current = to_decimal(goal.current_amount)
    if current_amount is not None:
        current = round_money(current_amount)
        if current < 0:
            raise InvalidAmount("Current amount must not be negative")
    if completed is None:
        completed = goal.completed or current >= to_decimal(goal.target_amount)
    return _transition(goal, current, bool(completed), now)


def progress_percentage(goal: Goal) -> Decimal:
    """Unclamped progress in percent; zero when the target is not positive."""
    target = to_decimal(goal.target_amount)
    if target <= 0:
        return ZERO
    return round_money(to_decimal(goal.current_amount) / target * HUNDRED)


def goal_progress(goal: Goal) -> GoalProgress:
    percentage = progress_percentage(goal)
    if goal.completed:
        status = COMPLETED
    elif percentage >= CLOSE_THRESHOLD:
        status = CLOSE
    else:
        status = IN_PROGRESS
    remaining = max(ZERO, to_decimal(goal.target_amount) - to_decimal(goal.current_amount))
    return GoalProgress(
        current_amount=round_money(goal.current_amount),
        completed=goal.completed,
        percentage=percentage,
        display_percentage=min(HUNDRED, percentage),
        remaining=round_money(remaining),
        status=status,
    )


def achieved_notification(event: GoalAchieved) -> NotificationDraft:
    return NotificationDraft(
        user_id=event.user_id,
        type=GOAL_ACHIEVED,
        title="Goal Achieved! 🎉",
        message=f"You've reached your goal: {event.title}",
        data={"goalId": event.goal_id},
    )
