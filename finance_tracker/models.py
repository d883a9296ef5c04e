"""Typed records for the finance tracker.

Records are immutable snapshots handed over by the storage layer.  Money
is always a :class:`decimal.Decimal` quantised to cents; expense amounts
are stored negative and income amounts positive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .config import UNCATEGORIZED_COLOR, UNCATEGORIZED_NAME

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)


@dataclass(frozen=True)
class User:
    id: int
    email: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass(frozen=True)
class Category:
    id: int
    user_id: int
    name: str
    color: str


@dataclass(frozen=True)
class CategoryRef:
    """Category as seen by aggregation: a real category or the synthetic bucket.

    The "Uncategorized" bucket has ``id=None`` and is never persisted.
    """

    id: Optional[int]
    name: str
    color: str

    @classmethod
    def of(cls, category: Category) -> "CategoryRef":
        return cls(id=category.id, name=category.name, color=category.color)

    @property
    def is_uncategorized(self) -> bool:
        return self.id is None


UNCATEGORIZED = CategoryRef(id=None, name=UNCATEGORIZED_NAME, color=UNCATEGORIZED_COLOR)


def resolve_category(category_id: Optional[int], categories: Mapping[int, Category]) -> CategoryRef:
    """Map a transaction's category id to a :class:`CategoryRef`.

    Unknown ids (for example a category that belongs to another user)
    fall into the uncategorized bucket as well.
    """
    if category_id is None:
        return UNCATEGORIZED
    category = categories.get(category_id)
    if category is None:
        return UNCATEGORIZED
    return CategoryRef.of(category)


def index_by_id(records: Iterable[Any]) -> Dict[Any, Any]:
    return {record.id: record for record in records}


@dataclass(frozen=True)
class Transaction:
    id: int
    user_id: int
    amount: Decimal
    type: str
    date: date
    currency: str = "GBP"
    category_id: Optional[int] = None
    description: Optional[str] = None
    merchant: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.type == EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type == INCOME


@dataclass(frozen=True)
class BudgetShare:
    id: int
    budget_id: int
    user_id: int
    can_edit: bool = False


@dataclass(frozen=True)
class Budget:
    id: int
    user_id: int
    category_id: int
    amount: Decimal
    month: int
    year: int
    shares: Tuple[BudgetShare, ...] = ()

    def share_for(self, user_id: int) -> Optional[BudgetShare]:
        for share in self.shares:
            if share.user_id == user_id:
                return share
        return None


@dataclass(frozen=True)
class Goal:
    id: int
    user_id: int
    title: str
    target_amount: Decimal
    current_amount: Decimal
    month: int
    year: int
    completed: bool = False
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class NotificationDraft:
    """A notification produced by the core, not yet stored."""

    user_id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Notification:
    id: int
    user_id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any]
    read: bool
    created_at: datetime
