"""CSV import and export of transactions.

Import expects a header row with ``date``, ``amount`` and ``type`` and
optionally ``description``, ``merchant`` and ``category`` (case and
surrounding whitespace of the header names are ignored).  Amounts are
positive; the type decides the sign.  Rows are validated one by one and
problems are reported as ``Row N: ...`` where ``N`` is the spreadsheet
row number (the header is row 1).

Export writes ``Date, Description, Merchant, Category, Type, Amount,
Currency`` with absolute amounts.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from . import db, services
from .amounts import round_money, to_decimal, validate_currency
from .config import DEFAULT_CURRENCY, IMPORT_MAX_BYTES
from .errors import FinanceError, InvalidRequest
from .models import TRANSACTION_TYPES, Category, index_by_id, resolve_category

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["date", "amount", "type"]
OPTIONAL_COLUMNS = ["description", "merchant", "category"]
EXPORT_COLUMNS = ["Date", "Description", "Merchant", "Category", "Type", "Amount", "Currency"]

Source = Union[str, Path, bytes, io.IOBase]


@dataclass
class ImportResult:
    imported: int
    total: int
    errors: List[str] = field(default_factory=list)
    message: str = ""


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _check_size(source: Source) -> None:
    if isinstance(source, bytes):
        size = len(source)
    elif isinstance(source, (str, Path)):
        size = Path(source).stat().st_size
    else:
        return
    if size > IMPORT_MAX_BYTES:
        raise InvalidRequest("File too large")


def read_transactions_csv(source: Source) -> pd.DataFrame:
    """Load an import file as strings with normalised header names.

    Raises:
        InvalidRequest: the file is too large, empty, not UTF-8 CSV or
            lacks a required column.
    """
    _check_size(source)
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, index_col=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise InvalidRequest("CSV file is empty") from None
    except (UnicodeDecodeError, pd.errors.ParserError):
        raise InvalidRequest("Invalid CSV file") from None

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidRequest(f"Missing required columns: {', '.join(missing)}")
    for column in OPTIONAL_COLUMNS:
        if column not in df.columns:
            df[column] = ""
    return df[REQUIRED_COLUMNS + OPTIONAL_COLUMNS]


def _parse_date(value: str) -> Optional[date]:
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _category_for(actor_id: int, name: str, cache: Dict[str, Category]) -> Category:
    key = name.lower()
    if key not in cache:
        existing = db.find_category_by_name(actor_id, name)
        cache[key] = existing or services.create_category(actor_id, name)
    return cache[key]


def import_transactions(actor_id: int, source: Source, currency: str = DEFAULT_CURRENCY) -> ImportResult:
    """Import transactions for ``actor_id`` from a CSV file.

    Valid rows are stored even when other rows fail.  Categories are
    matched by name, ignoring case, and created when missing.  A row that
    repeats a stored transaction (same date, signed amount and
    description) is skipped.

    Example:
        >>> result = import_transactions(user.id, b"date,amount,type\\n2024-03-01,12.50,expense\\n")
        >>> result.imported, result.total
        (1, 1)
    """
    currency = validate_currency(currency)
    df = read_transactions_csv(source)
    errors: List[str] = []
    imported = 0
    categories: Dict[str, Category] = {}

    for index, row in df.iterrows():
        row_number = index + 2
        values = {k: str(v).strip() for k, v in row.items()}

        if not (values["date"] and values["amount"] and values["type"]):
            errors.append(f"Row {row_number}: Missing required fields (date, amount, type)")
            continue

        txn_date = _parse_date(values["date"])
        if txn_date is None:
            errors.append(f"Row {row_number}: Invalid date format")
            continue

        try:
            amount = round_money(to_decimal(values["amount"].replace(",", "")))
        except FinanceError:
            amount = None
        if amount is None or amount <= 0:
            errors.append(f"Row {row_number}: Invalid amount")
            continue

        txn_type = values["type"].lower()
        if txn_type not in TRANSACTION_TYPES:
            errors.append(f"Row {row_number}: Type must be 'income' or 'expense'")
            continue

        description = values["description"] or None
        signed = -amount if txn_type == "expense" else amount
        if db.transaction_exists(actor_id, txn_date, signed, description):
            errors.append(f"Row {row_number}: Duplicate transaction skipped")
            continue

        category_id = None
        if values["category"]:
            category_id = _category_for(actor_id, values["category"], categories).id

        try:
            services.create_transaction(
                actor_id,
                amount,
                txn_type,
                txn_date,
                currency=currency,
                category_id=category_id,
                description=description,
                merchant=values["merchant"] or None,
            )
        except FinanceError as exc:
            errors.append(f"Row {row_number}: {exc.message}")
            continue
        imported += 1

    total = len(df)
    logger.info("User %s imported %d of %d rows (%d errors)", actor_id, imported, total, len(errors))
    return ImportResult(
        imported=imported,
        total=total,
        errors=errors,
        message=f"Successfully imported {imported} of {total} transactions",
    )


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_frame(
    actor_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    category_id: Optional[int] = None,
) -> pd.DataFrame:
    """Build the export table; ``start`` and ``end`` are both inclusive."""
    transactions = db.fetch_transactions(
        actor_id,
        start_date=start,
        end_date=end + timedelta(days=1) if end else None,
        category_id=category_id,
    )
    categories = index_by_id(db.fetch_categories(actor_id))
    rows = [
        {
            "Date": t.date.isoformat(),
            "Description": t.description or "",
            "Merchant": t.merchant or "",
            "Category": resolve_category(t.category_id, categories).name,
            "Type": t.type,
            "Amount": f"{abs(round_money(t.amount)):.2f}",
            "Currency": t.currency,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_csv(
    actor_id: int,
    path: Optional[Union[str, Path]] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    category_id: Optional[int] = None,
) -> str:
    """Render the export as CSV text, also writing it to ``path`` if given."""
    text = export_frame(actor_id, start=start, end=end, category_id=category_id).to_csv(index=False)
    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.info("Exported transactions for user %s to %s", actor_id, path)
    return text
