"""Domain errors raised by the finance tracker.

Every error carries a ``status_code`` hint so that an HTTP-facing caller
can map it to a response without inspecting messages.  View attempts by
actors with no access to a resource raise :class:`NotFound`, never
:class:`Forbidden`, so that existence is not leaked.
"""

from __future__ import annotations

from typing import Optional


class FinanceError(Exception):
    """Base class for all domain errors."""

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAmount(FinanceError):
    default_message = "Amount must be a valid number"


class InvalidType(FinanceError):
    default_message = 'Type must be "income" or "expense"'


class UnsupportedCurrency(FinanceError):
    default_message = "Unsupported currency"


class InvalidRequest(FinanceError):
    default_message = "Invalid request"


class DuplicateBudget(FinanceError):
    status_code = 409
    default_message = "Budget already exists for this category and period"


class DuplicateShare(FinanceError):
    status_code = 409
    default_message = "Budget already shared with this user"


class DuplicateGoal(FinanceError):
    status_code = 409
    default_message = "Goal with this title already exists for this month"


class SelfShare(FinanceError):
    default_message = "Cannot share with yourself"


class Forbidden(FinanceError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(FinanceError):
    status_code = 404
    default_message = "Not found"


__all__ = [
    "FinanceError",
    "InvalidAmount",
    "InvalidType",
    "UnsupportedCurrency",
    "InvalidRequest",
    "DuplicateBudget",
    "DuplicateShare",
    "DuplicateGoal",
    "SelfShare",
    "Forbidden",
    "NotFound",
]
