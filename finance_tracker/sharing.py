"""Budget sharing permissions.

Every decision starts from :func:`classify`, which places an actor in one
of four roles against a budget:

* ``OWNER`` – the budget's creator; may do everything.
* ``EDITOR`` – holds a share with ``can_edit``; may view and edit numbers.
* ``VIEWER`` – holds a read-only share; may view.
* ``NO_ACCESS`` – everybody else.

Shares never grant deletion of the budget and never allow re-sharing.
Actors without any access are told the budget does not exist
(:class:`~finance_tracker.errors.NotFound`); actors that can see the
budget but lack a right get :class:`~finance_tracker.errors.Forbidden`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import DuplicateShare, FinanceError, Forbidden, NotFound, SelfShare
from .models import Budget, BudgetShare, CategoryRef, NotificationDraft, User

BUDGET_SHARED = "budget_shared"


class Role(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    NO_ACCESS = "no_access"

    @property
    def can_view(self) -> bool:
        return self is not Role.NO_ACCESS

    @property
    def can_edit(self) -> bool:
        return self in (Role.OWNER, Role.EDITOR)

    @property
    def can_delete(self) -> bool:
        return self is Role.OWNER


class ShareRemoval(str, Enum):
    REVOKE = "revoke"  # owner removes a grantee
    LEAVE = "leave"    # grantee removes their own access


def classify(budget: Budget, actor_id: int) -> Role:
    if budget.user_id == actor_id:
        return Role.OWNER
    share = budget.share_for(actor_id)
    if share is None:
        return Role.NO_ACCESS
    return Role.EDITOR if share.can_edit else Role.VIEWER


def _denial(role: Role, action: str) -> FinanceError:
    if not role.can_view:
        return NotFound("Budget not found")
    return Forbidden(f"Insufficient permissions to {action} this budget")


def ensure_can_view(budget: Budget, actor_id: int) -> Role:
    role = classify(budget, actor_id)
    if not role.can_view:
        raise NotFound("Budget not found")
    return role


def ensure_can_edit(budget: Budget, actor_id: int) -> Role:
    role = classify(budget, actor_id)
    if not role.can_edit:
        raise _denial(role, "edit")
    return role


def ensure_can_delete(budget: Budget, actor_id: int) -> Role:
    role = classify(budget, actor_id)
    if not role.can_delete:
        raise _denial(role, "delete")
    return role


def ensure_can_manage_shares(budget: Budget, actor_id: int) -> Role:
    """Only the owner may create, change or list shares."""
    role = classify(budget, actor_id)
    if role is not Role.OWNER:
        raise _denial(role, "share")
    return role


def ensure_can_remove_share(budget: Budget, share: BudgetShare, actor_id: int) -> ShareRemoval:
    """Decide whether ``actor_id`` may delete ``share``.

    The owner may revoke any share; a grantee may always leave, whatever
    their edit right, but cannot touch other grantees' shares.
    """
    role = classify(budget, actor_id)
    if share.budget_id != budget.id:
        raise NotFound("Share not found")
    if role is Role.OWNER:
        return ShareRemoval.REVOKE
    if role.can_view and share.user_id == actor_id:
        return ShareRemoval.LEAVE
    raise _denial(role, "change sharing of")


def check_new_share(budget: Budget, target_user_id: int, actor_id: int) -> None:
    """Validate a share request before it is stored.

    Raises:
        NotFound / Forbidden: the actor is not the owner.
        SelfShare: the target is the owner.
        DuplicateShare: the target already holds a share.
    """
    ensure_can_manage_shares(budget, actor_id)
    if target_user_id == budget.user_id:
        raise SelfShare()
    if budget.share_for(target_user_id) is not None:
        raise DuplicateShare()


def share_notification(
    owner: User,
    category_name: str,
    budget: Budget,
    grantee_id: int,
    can_edit: bool,
) -> NotificationDraft:
    """Build the notification sent to a new grantee."""
    permission = " with edit permissions" if can_edit else " (view only)"
    return NotificationDraft(
        user_id=grantee_id,
        type=BUDGET_SHARED,
        title="Budget Shared With You",
        message=f'{owner.display_name} shared the "{category_name}" budget with you{permission}.',
        data={
            "budgetId": budget.id,
            "budgetName": category_name,
            "sharedById": owner.id,
            "sharedByName": owner.display_name,
            "canEdit": bool(can_edit),
        },
    )


@dataclass(frozen=True)
class BudgetListing:
    """A budget as listed for one actor, tagged with how they can use it."""

    budget: Budget
    category: CategoryRef
    role: Role
    is_shared: bool
    can_edit: bool
    can_delete: bool
    shared_by: Optional[User] = None
    share_id: Optional[int] = None


def listing_for(budget: Budget, actor_id: int, category: CategoryRef, owner: Optional[User] = None) -> BudgetListing:
    role = ensure_can_view(budget, actor_id)
    share = budget.share_for(actor_id)
    is_shared = role is not Role.OWNER
    return BudgetListing(
        budget=budget,
        category=category,
        role=role,
        is_shared=is_shared,
        can_edit=role.can_edit,
        can_delete=role.can_delete,
        shared_by=owner if is_shared else None,
        share_id=share.id if share else None,
    )
