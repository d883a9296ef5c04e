from datetime import datetime, timezone
from decimal import Decimal

import pytest

from finance_tracker.errors import InvalidAmount, InvalidRequest
from finance_tracker.goals import (
    achieved_notification,
    apply_contribution,
    goal_progress,
    new_goal,
    progress_percentage,
    update_goal,
)
from finance_tracker.models import Goal

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


def _goal(current="850", target="1000", completed=False, completed_at=None):
    return Goal(
        id=7,
        user_id=1,
        title="Holiday fund",
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        month=3,
        year=2024,
        completed=completed,
        completed_at=completed_at,
    )


def test_contribution_reaching_target_completes_goal_once():
    update = apply_contribution(_goal(), "200", now=NOW)

    assert update.goal.current_amount == Decimal("1000.00")
    assert update.goal.completed
    assert update.goal.completed_at == NOW
    assert update.event is not None
    assert update.event.goal_id == 7
    assert update.event.title == "Holiday fund"

    again = apply_contribution(update.goal, "50", now=NOW)
    assert again.goal.current_amount == Decimal("1000.00")
    assert again.goal.completed
    assert again.event is None


def test_contribution_is_clamped_at_zero():
    update = apply_contribution(_goal(current="100"), "-250")
    assert update.goal.current_amount == Decimal("0.00")
    assert not update.goal.completed
    assert update.event is None


def test_zero_contribution_emits_nothing():
    update = apply_contribution(_goal(), 0)
    assert update.goal.current_amount == Decimal("850.00")
    assert update.event is None


def test_manual_update_reaching_target_completes_goal():
    update = update_goal(_goal(), current_amount="1000", now=NOW)
    assert update.goal.completed
    assert update.event is not None


def test_manual_uncomplete_clears_completion_time():
    done = _goal(current="1000", completed=True, completed_at=NOW)

    update = update_goal(done, completed=False)

    assert not update.goal.completed
    assert update.goal.completed_at is None
    assert update.event is None


def test_lowering_amount_does_not_uncomplete_goal():
    done = _goal(current="1000", completed=True, completed_at=NOW)

    update = update_goal(done, current_amount="500")

    assert update.goal.completed
    assert update.goal.completed_at == NOW
    assert update.event is None


def test_explicit_completion_flag_wins_over_amount():
    update = update_goal(_goal(current="100"), completed=True, now=NOW)
    assert update.goal.completed
    assert update.event is not None

    update = update_goal(_goal(current="1000", completed=True, completed_at=NOW), current_amount="1200", completed=False)
    assert not update.goal.completed


def test_manual_negative_amount_is_rejected():
    with pytest.raises(InvalidAmount):
        update_goal(_goal(), current_amount="-1")


def test_new_goal_validation():
    goal = new_goal(1, "  Emergency fund ", "500", 3, 2024)
    assert goal.title == "Emergency fund"
    assert goal.current_amount == 0
    assert not goal.completed

    with pytest.raises(InvalidRequest):
        new_goal(1, "   ", "500", 3, 2024)
    with pytest.raises(InvalidAmount):
        new_goal(1, "Car", "0", 3, 2024)
    with pytest.raises(InvalidRequest):
        new_goal(1, "Car", "500", 13, 2024)


@pytest.mark.parametrize(
    "current, completed, expected_status",
    [
        ("100", False, "in_progress"),
        ("850", False, "close"),
        ("1000", True, "completed"),
    ],
)
def test_goal_progress_tiers(current, completed, expected_status):
    progress = goal_progress(_goal(current=current, completed=completed))
    assert progress.status == expected_status


def test_goal_progress_figures():
    progress = goal_progress(_goal(current="850"))
    assert progress.percentage == Decimal("85.00")
    assert progress.display_percentage == Decimal("85.00")
    assert progress.remaining == Decimal("150.00")
    assert progress_percentage(_goal(target="0")) == 0


def test_achieved_notification_content():
    event = apply_contribution(_goal(), "150", now=NOW).event

    draft = achieved_notification(event)

    assert draft.user_id == 1
    assert draft.type == "goal_achieved"
    assert draft.title == "Goal Achieved! 🎉"
    assert draft.message == "You've reached your goal: Holiday fund"
    assert draft.data == {"goalId": 7}
