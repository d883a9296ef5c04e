#!/usr/bin/env python3
"""Populate the database with a small demo household."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import db, services
from finance_tracker.budgets import month_window

CATEGORIES = {
    'Groceries': '#10B981',
    'Rent': '#3B82F6',
    'Eating Out': '#F59E0B',
}


def _seed_transactions(user_id: int, categories, year: int, month: int) -> None:
    services.create_transaction(user_id, '2500.00', 'income', date(year, month, 1), description='Salary')
    services.create_transaction(user_id, '950.00', 'expense', date(year, month, 2),
                                category_id=categories['Rent'].id, description='Rent')
    for day, amount in [(3, '45.50'), (10, '20.00'), (17, '18.75')]:
        services.create_transaction(user_id, amount, 'expense', date(year, month, day),
                                    category_id=categories['Groceries'].id, description='Supermarket')
    services.create_transaction(user_id, '32.40', 'expense', date(year, month, 12),
                                category_id=categories['Eating Out'].id, merchant='Pizza Place')
    services.create_transaction(user_id, '12.00', 'expense', date(year, month, 14), description='Parking')


def main(year: int, month: int) -> None:
    db.init_db()
    owner = db.fetch_user_by_email('alex@example.com') or services.register_user('alex@example.com', 'Alex')
    partner = db.fetch_user_by_email('sam@example.com') or services.register_user('sam@example.com', 'Sam')

    existing = {c.name: c for c in services.list_categories(owner.id)}
    categories = {
        name: existing.get(name) or services.create_category(owner.id, name, color)
        for name, color in CATEGORIES.items()
    }

    # Only seed a month that has no transactions yet
    start, end = month_window(year, month)
    if not services.list_transactions(owner.id, start_date=start, end_date=end):
        _seed_transactions(owner.id, categories, year, month)

    budgets = {
        b.budget.category_id: b for b in services.list_budgets(owner.id)
        if not b.is_shared and (b.budget.year, b.budget.month) == (year, month)
    }
    if categories['Groceries'].id not in budgets:
        groceries_budget = services.create_budget(owner.id, categories['Groceries'].id, '300', month, year)
        services.create_budget(owner.id, categories['Eating Out'].id, '40', month, year)
        services.share_budget(owner.id, groceries_budget.id, partner.email, can_edit=False)

    if not services.list_goals(owner.id, year=year, month=month):
        goal = services.create_goal(owner.id, 'Holiday fund', '1000', month, year)
        services.contribute_to_goal(owner.id, goal.id, '850')

    print(f"Seeded demo data for {owner.email} (shared with {partner.email}) in {year:04d}-{month:02d}")


if __name__ == '__main__':
    today = date.today()
    parser = argparse.ArgumentParser(description='Seed demo data.')
    parser.add_argument('--year', type=int, default=today.year)
    parser.add_argument('--month', type=int, default=today.month)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    main(args.year, args.month)
