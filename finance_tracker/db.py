"""SQLite storage for users, categories, transactions, budgets and goals.

Uniqueness rules (one budget per owner/category/month/year, one share per
budget/grantee, one goal title per owner/month/year) are enforced by
unique indexes.  Callers may pre-check for duplicates, but only the index
is authoritative: a violation is translated into the matching domain
error by :func:`_unique_guard`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .amounts import round_money
from .config import DB_PATH
from .errors import DuplicateBudget, DuplicateGoal, DuplicateShare, InvalidRequest
from .models import (
    Budget,
    BudgetShare,
    Category,
    Goal,
    Notification,
    NotificationDraft,
    Transaction,
    User,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL,
    name TEXT,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_users_email ON users (email);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    color TEXT NOT NULL,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_category_user ON categories (user_id);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    type TEXT NOT NULL,
    currency TEXT NOT NULL,
    transaction_date TEXT NOT NULL,
    category_id INTEGER REFERENCES categories (id) ON DELETE SET NULL,
    description TEXT,
    merchant TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, transaction_date);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category_id);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    category_id INTEGER NOT NULL REFERENCES categories (id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    month INTEGER NOT NULL,
    year INTEGER NOT NULL,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_budget_period ON budgets (user_id, category_id, month, year);

CREATE TABLE IF NOT EXISTS budget_shares (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    budget_id INTEGER NOT NULL REFERENCES budgets (id) ON DELETE CASCADE,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    can_edit INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_budget_share ON budget_shares (budget_id, user_id);

CREATE TABLE IF NOT EXISTS goals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    target_amount TEXT NOT NULL,
    current_amount TEXT NOT NULL,
    month INTEGER NOT NULL,
    year INTEGER NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_goal_title ON goals (user_id, title, month, year);

CREATE TABLE IF NOT EXISTS notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    data TEXT,
    read INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_notification_user ON notifications (user_id, created_at);
"""

# Which unique index maps to which domain error, keyed by table name
# as it appears in SQLite's "UNIQUE constraint failed: <table>.<col>" text.
_UNIQUE_ERRORS = (
    ("budget_shares.", DuplicateShare),
    ("budgets.", DuplicateBudget),
    ("goals.", DuplicateGoal),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def connect() -> Iterator[sqlite3.Connection]:
    db_path = Path(DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    with connect() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    logger.info("Initialised database schema at %s", DB_PATH)


@contextmanager
def _unique_guard() -> Iterator[None]:
    """Translate unique-index violations into domain errors."""
    try:
        yield
    except sqlite3.IntegrityError as exc:
        text = str(exc)
        if "UNIQUE constraint failed" not in text:
            raise
        for table_prefix, error_cls in _UNIQUE_ERRORS:
            if table_prefix in text:
                logger.debug("Unique constraint hit: %s", text)
                raise error_cls() from exc
        if "users.email" in text:
            raise InvalidRequest("Email already registered") from exc
        raise


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _money(value) -> str:
    return str(round_money(value))


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _user(row: sqlite3.Row) -> User:
    return User(id=row['id'], email=row['email'], name=row['name'])


def _category(row: sqlite3.Row) -> Category:
    return Category(id=row['id'], user_id=row['user_id'], name=row['name'], color=row['color'])


def _transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row['id'],
        user_id=row['user_id'],
        amount=Decimal(row['amount']),
        type=row['type'],
        date=date.fromisoformat(row['transaction_date']),
        currency=row['currency'],
        category_id=row['category_id'],
        description=row['description'],
        merchant=row['merchant'],
    )


def _share(row: sqlite3.Row) -> BudgetShare:
    return BudgetShare(
        id=row['id'],
        budget_id=row['budget_id'],
        user_id=row['user_id'],
        can_edit=bool(row['can_edit']),
    )


def _budget(row: sqlite3.Row, shares: Sequence[BudgetShare] = ()) -> Budget:
    return Budget(
        id=row['id'],
        user_id=row['user_id'],
        category_id=row['category_id'],
        amount=Decimal(row['amount']),
        month=row['month'],
        year=row['year'],
        shares=tuple(shares),
    )


def _goal(row: sqlite3.Row) -> Goal:
    return Goal(
        id=row['id'],
        user_id=row['user_id'],
        title=row['title'],
        target_amount=Decimal(row['target_amount']),
        current_amount=Decimal(row['current_amount']),
        month=row['month'],
        year=row['year'],
        completed=bool(row['completed']),
        completed_at=_parse_ts(row['completed_at']),
    )


def _notification(row: sqlite3.Row) -> Notification:
    return Notification(
        id=row['id'],
        user_id=row['user_id'],
        type=row['type'],
        title=row['title'],
        message=row['message'],
        data=json.loads(row['data']) if row['data'] else {},
        read=bool(row['read']),
        created_at=datetime.fromisoformat(row['created_at']),
    )


def _placeholders(values: Sequence) -> str:
    return ",".join("?" for _ in values)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def insert_user(email: str, name: Optional[str] = None) -> User:
    with connect() as conn, _unique_guard():
        cur = conn.execute(
            "INSERT INTO users (email, name, created_at) VALUES (?, ?, ?)",
            (email, name, _utcnow().isoformat()),
        )
        conn.commit()
        return User(id=cur.lastrowid, email=email, name=name)


def fetch_user(user_id: int) -> Optional[User]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return _user(row) if row else None


def fetch_user_by_email(email: str) -> Optional[User]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email.strip().lower(),)).fetchone()
    return _user(row) if row else None


def fetch_users(user_ids: Iterable[int]) -> List[User]:
    ids = sorted(set(user_ids))
    if not ids:
        return []
    with connect() as conn:
        rows = conn.execute(f"SELECT * FROM users WHERE id IN ({_placeholders(ids)})", ids).fetchall()
    return [_user(r) for r in rows]


def search_users(query: str, exclude_user_id: int, limit: int) -> List[User]:
    pattern = f"%{query.lower()}%"
    with connect() as conn:
        rows = conn.execute(
            "SELECT * FROM users WHERE (LOWER(email) LIKE ? OR LOWER(COALESCE(name, '')) LIKE ?) "
            "AND id != ? ORDER BY email LIMIT ?",
            (pattern, pattern, exclude_user_id, limit),
        ).fetchall()
    return [_user(r) for r in rows]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def insert_category(user_id: int, name: str, color: str) -> Category:
    with connect() as conn:
        cur = conn.execute(
            "INSERT INTO categories (user_id, name, color, created_at) VALUES (?, ?, ?, ?)",
            (user_id, name, color, _utcnow().isoformat()),
        )
        conn.commit()
        return Category(id=cur.lastrowid, user_id=user_id, name=name, color=color)


def fetch_category(category_id: int) -> Optional[Category]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
    return _category(row) if row else None


def fetch_categories(user_id: int) -> List[Category]:
    with connect() as conn:
        rows = conn.execute(
            "SELECT * FROM categories WHERE user_id = ? ORDER BY name ASC, id ASC", (user_id,)
        ).fetchall()
    return [_category(r) for r in rows]


def fetch_categories_by_ids(category_ids: Iterable[int]) -> List[Category]:
    ids = sorted(set(category_ids))
    if not ids:
        return []
    with connect() as conn:
        rows = conn.execute(f"SELECT * FROM categories WHERE id IN ({_placeholders(ids)})", ids).fetchall()
    return [_category(r) for r in rows]


def find_category_by_name(user_id: int, name: str) -> Optional[Category]:
    """Case-insensitive lookup of one of the user's categories."""
    with connect() as conn:
        row = conn.execute(
            "SELECT * FROM categories WHERE user_id = ? AND LOWER(name) = LOWER(?) ORDER BY id LIMIT 1",
            (user_id, name.strip()),
        ).fetchone()
    return _category(row) if row else None


def update_category(category: Category) -> Category:
    with connect() as conn:
        conn.execute(
            "UPDATE categories SET name = ?, color = ? WHERE id = ?",
            (category.name, category.color, category.id),
        )
        conn.commit()
    return category


def delete_category(category_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def insert_transaction(
    user_id: int,
    amount: Decimal,
    txn_type: str,
    txn_date: date,
    currency: str,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
    merchant: Optional[str] = None,
) -> Transaction:
    with connect() as conn:
        cur = conn.execute(
            "INSERT INTO transactions (user_id, amount, type, currency, transaction_date, category_id, "
            "description, merchant, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                _money(amount),
                txn_type,
                currency,
                txn_date.isoformat(),
                category_id,
                description,
                merchant,
                _utcnow().isoformat(),
            ),
        )
        conn.commit()
        txn_id = cur.lastrowid
    return Transaction(
        id=txn_id,
        user_id=user_id,
        amount=round_money(amount),
        type=txn_type,
        date=txn_date,
        currency=currency,
        category_id=category_id,
        description=description,
        merchant=merchant,
    )


def fetch_transaction(transaction_id: int) -> Optional[Transaction]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,)).fetchone()
    return _transaction(row) if row else None


def fetch_transactions(
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    uncategorized_only: bool = False,
) -> List[Transaction]:
    """Fetch a user's transactions, newest first.

    ``start_date`` is inclusive and ``end_date`` exclusive.
    """
    where: List[str] = ["user_id = ?"]
    params: List = [user_id]

    if start_date:
        where.append("transaction_date >= ?")
        params.append(start_date.isoformat())
    if end_date:
        where.append("transaction_date < ?")
        params.append(end_date.isoformat())
    if category_id is not None:
        where.append("category_id = ?")
        params.append(category_id)
    if uncategorized_only:
        where.append("category_id IS NULL")

    sql = "SELECT * FROM transactions WHERE " + " AND ".join(where)
    sql += " ORDER BY transaction_date DESC, id DESC"

    with connect() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_transaction(r) for r in rows]


def transaction_exists(user_id: int, txn_date: date, amount: Decimal, description: Optional[str]) -> bool:
    """Whether an identical (date, signed amount, description) row is stored."""
    with connect() as conn:
        row = conn.execute(
            "SELECT 1 FROM transactions WHERE user_id = ? AND transaction_date = ? AND amount = ? "
            "AND COALESCE(description, '') = ? LIMIT 1",
            (user_id, txn_date.isoformat(), _money(amount), description or ''),
        ).fetchone()
    return row is not None


def update_transaction(txn: Transaction) -> Transaction:
    with connect() as conn:
        conn.execute(
            "UPDATE transactions SET amount = ?, type = ?, currency = ?, transaction_date = ?, "
            "category_id = ?, description = ?, merchant = ? WHERE id = ?",
            (
                _money(txn.amount),
                txn.type,
                txn.currency,
                txn.date.isoformat(),
                txn.category_id,
                txn.description,
                txn.merchant,
                txn.id,
            ),
        )
        conn.commit()
    return txn


def delete_transaction(transaction_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Budgets and shares
# ---------------------------------------------------------------------------


def _shares_by_budget(conn: sqlite3.Connection, budget_ids: Sequence[int]) -> Dict[int, List[BudgetShare]]:
    shares: Dict[int, List[BudgetShare]] = {bid: [] for bid in budget_ids}
    if not budget_ids:
        return shares
    rows = conn.execute(
        f"SELECT * FROM budget_shares WHERE budget_id IN ({_placeholders(budget_ids)}) "
        "ORDER BY created_at DESC, id DESC",
        list(budget_ids),
    ).fetchall()
    for row in rows:
        shares[row['budget_id']].append(_share(row))
    return shares


def _budgets_with_shares(conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[Budget]:
    shares = _shares_by_budget(conn, [r['id'] for r in rows])
    return [_budget(r, shares.get(r['id'], ())) for r in rows]


def insert_budget(user_id: int, category_id: int, amount: Decimal, month: int, year: int) -> Budget:
    with connect() as conn, _unique_guard():
        cur = conn.execute(
            "INSERT INTO budgets (user_id, category_id, amount, month, year, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, category_id, _money(amount), month, year, _utcnow().isoformat()),
        )
        conn.commit()
        budget_id = cur.lastrowid
    return Budget(
        id=budget_id,
        user_id=user_id,
        category_id=category_id,
        amount=round_money(amount),
        month=month,
        year=year,
    )


def fetch_budget(budget_id: int) -> Optional[Budget]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM budgets WHERE id = ?", (budget_id,)).fetchone()
        if row is None:
            return None
        return _budgets_with_shares(conn, [row])[0]


def fetch_budgets(user_id: int) -> List[Budget]:
    """Budgets owned by ``user_id``, newest period first."""
    with connect() as conn:
        rows = conn.execute(
            "SELECT * FROM budgets WHERE user_id = ? ORDER BY year DESC, month DESC, id ASC",
            (user_id,),
        ).fetchall()
        return _budgets_with_shares(conn, rows)


def fetch_shared_budgets(user_id: int) -> List[Budget]:
    """Budgets other users have shared with ``user_id``."""
    with connect() as conn:
        rows = conn.execute(
            "SELECT b.* FROM budgets b JOIN budget_shares s ON s.budget_id = b.id "
            "WHERE s.user_id = ? ORDER BY b.year DESC, b.month DESC, b.id ASC",
            (user_id,),
        ).fetchall()
        return _budgets_with_shares(conn, rows)


def update_budget(budget_id: int, amount: Decimal, month: int, year: int) -> Optional[Budget]:
    with connect() as conn, _unique_guard():
        conn.execute(
            "UPDATE budgets SET amount = ?, month = ?, year = ? WHERE id = ?",
            (_money(amount), month, year, budget_id),
        )
        conn.commit()
    return fetch_budget(budget_id)


def delete_budget(budget_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        conn.commit()
        return cur.rowcount > 0


def insert_share(
    budget_id: int,
    user_id: int,
    can_edit: bool,
    notification: Optional[NotificationDraft] = None,
) -> BudgetShare:
    """Store a share, and its notification in the same transaction."""
    with connect() as conn, _unique_guard():
        cur = conn.execute(
            "INSERT INTO budget_shares (budget_id, user_id, can_edit, created_at) VALUES (?, ?, ?, ?)",
            (budget_id, user_id, int(bool(can_edit)), _utcnow().isoformat()),
        )
        if notification is not None:
            _insert_notification(conn, notification, _utcnow())
        conn.commit()
        return BudgetShare(id=cur.lastrowid, budget_id=budget_id, user_id=user_id, can_edit=bool(can_edit))


def fetch_share(share_id: int) -> Optional[BudgetShare]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM budget_shares WHERE id = ?", (share_id,)).fetchone()
    return _share(row) if row else None


def fetch_shares(budget_id: int) -> List[BudgetShare]:
    with connect() as conn:
        return _shares_by_budget(conn, [budget_id])[budget_id]


def update_share(share_id: int, can_edit: bool) -> Optional[BudgetShare]:
    with connect() as conn:
        conn.execute("UPDATE budget_shares SET can_edit = ? WHERE id = ?", (int(bool(can_edit)), share_id))
        conn.commit()
    return fetch_share(share_id)


def delete_share(share_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM budget_shares WHERE id = ?", (share_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def insert_goal(goal: Goal) -> Goal:
    with connect() as conn, _unique_guard():
        cur = conn.execute(
            "INSERT INTO goals (user_id, title, target_amount, current_amount, month, year, completed, "
            "completed_at, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                goal.user_id,
                goal.title,
                _money(goal.target_amount),
                _money(goal.current_amount),
                goal.month,
                goal.year,
                int(goal.completed),
                goal.completed_at.isoformat() if goal.completed_at else None,
                _utcnow().isoformat(),
            ),
        )
        conn.commit()
        goal_id = cur.lastrowid
    return fetch_goal(goal_id)


def fetch_goal(goal_id: int) -> Optional[Goal]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
    return _goal(row) if row else None


def fetch_goals(user_id: int, year: Optional[int] = None, month: Optional[int] = None) -> List[Goal]:
    where = ["user_id = ?"]
    params: List = [user_id]
    if year is not None:
        where.append("year = ?")
        params.append(year)
    if month is not None:
        where.append("month = ?")
        params.append(month)
    sql = "SELECT * FROM goals WHERE " + " AND ".join(where) + " ORDER BY created_at ASC, id ASC"
    with connect() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_goal(r) for r in rows]


def save_goal(goal: Goal, notification: Optional[NotificationDraft] = None) -> Goal:
    """Persist progress fields of an existing goal.

    A notification, if given, is written in the same transaction.
    """
    with connect() as conn:
        conn.execute(
            "UPDATE goals SET current_amount = ?, completed = ?, completed_at = ? WHERE id = ?",
            (
                _money(goal.current_amount),
                int(goal.completed),
                goal.completed_at.isoformat() if goal.completed_at else None,
                goal.id,
            ),
        )
        if notification is not None:
            _insert_notification(conn, notification, _utcnow())
        conn.commit()
    return goal


def delete_goal(goal_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def _insert_notification(conn: sqlite3.Connection, draft: NotificationDraft, created_at: datetime) -> int:
    cur = conn.execute(
        "INSERT INTO notifications (user_id, type, title, message, data, read, created_at) "
        "VALUES (?, ?, ?, ?, ?, 0, ?)",
        (
            draft.user_id,
            draft.type,
            draft.title,
            draft.message,
            json.dumps(draft.data, sort_keys=True) if draft.data else None,
            created_at.isoformat(),
        ),
    )
    return cur.lastrowid


def insert_notification(draft: NotificationDraft) -> Notification:
    created_at = _utcnow()
    with connect() as conn:
        notification_id = _insert_notification(conn, draft, created_at)
        conn.commit()
    return Notification(
        id=notification_id,
        user_id=draft.user_id,
        type=draft.type,
        title=draft.title,
        message=draft.message,
        data=dict(draft.data),
        read=False,
        created_at=created_at,
    )


def fetch_notification(notification_id: int) -> Optional[Notification]:
    with connect() as conn:
        row = conn.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
    return _notification(row) if row else None


def fetch_notifications(user_id: int, limit: int) -> List[Notification]:
    with connect() as conn:
        rows = conn.execute(
            "SELECT * FROM notifications WHERE user_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [_notification(r) for r in rows]


def count_owned_notifications(user_id: int, notification_ids: Sequence[int]) -> int:
    ids = list(set(notification_ids))
    if not ids:
        return 0
    with connect() as conn:
        row = conn.execute(
            f"SELECT COUNT(*) FROM notifications WHERE user_id = ? AND id IN ({_placeholders(ids)})",
            [user_id, *ids],
        ).fetchone()
    return row[0]


def set_notifications_read(user_id: int, notification_ids: Sequence[int], read: bool) -> int:
    ids = list(set(notification_ids))
    if not ids:
        return 0
    with connect() as conn:
        cur = conn.execute(
            f"UPDATE notifications SET read = ? WHERE user_id = ? AND id IN ({_placeholders(ids)})",
            [int(bool(read)), user_id, *ids],
        )
        conn.commit()
        return cur.rowcount


def count_unread(user_id: int) -> int:
    with connect() as conn:
        row = conn.execute(
            "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND read = 0", (user_id,)
        ).fetchone()
    return row[0]


def delete_notification(notification_id: int) -> bool:
    with connect() as conn:
        cur = conn.execute("DELETE FROM notifications WHERE id = ?", (notification_id,))
        conn.commit()
        return cur.rowcount > 0
