#!/usr/bin/env python3
"""Show a user's uncategorized spending for one month."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import db
from finance_tracker.amounts import format_currency
from finance_tracker.budgets import month_window


def main(email: str, year: int, month: int, limit: int = 20) -> None:
    user = db.fetch_user_by_email(email.strip().lower())
    if user is None:
        print(f"No user registered as {email}")
        return

    start, end = month_window(year, month)
    txns = [
        t for t in db.fetch_transactions(user.id, start_date=start, end_date=end, uncategorized_only=True)
        if t.is_expense
    ]
    if not txns:
        print("All expenses are categorized. 🎉")
        return

    df = pd.DataFrame(
        {
            'Date': [t.date.isoformat() for t in txns],
            'Description': [t.description or '' for t in txns],
            'Amount': [float(abs(t.amount)) for t in txns],
        }
    )
    total = sum(abs(t.amount) for t in txns)
    print(f"Uncategorized expenses in {year:04d}-{month:02d}: {len(txns)} ({format_currency(total)})")

    print("\nTop descriptions:")
    print(df.groupby('Description')['Amount'].sum().sort_values(ascending=False).head(limit).to_string())

    print("\nSample rows:")
    print(df.head(limit).to_string(index=False))


if __name__ == '__main__':
    today = date.today()
    parser = argparse.ArgumentParser(description='Show uncategorized spending for a user.')
    parser.add_argument('email', help='Email of the user')
    parser.add_argument('--year', type=int, default=today.year)
    parser.add_argument('--month', type=int, default=today.month)
    parser.add_argument('--limit', type=int, default=20, help='How many rows to show')
    args = parser.parse_args()
    main(args.email, args.year, args.month, limit=args.limit)
