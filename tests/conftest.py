from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from finance_tracker import db as db_mod


@pytest.fixture
def store(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """A fresh SQLite database for one test."""
    db_path = tmp_path / "finance.db"
    monkeypatch.setattr(db_mod, "DB_PATH", str(db_path))
    db_mod.init_db()
    return db_path
