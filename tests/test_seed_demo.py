import importlib.util
from decimal import Decimal
from pathlib import Path

from finance_tracker import db, services

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "seed_demo.py"


def _load_seed_script():
    spec = importlib.util.spec_from_file_location("seed_demo", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seeding_twice_does_not_duplicate_data(store):
    seed = _load_seed_script()

    seed.main(2024, 3)
    seed.main(2024, 3)

    owner = db.fetch_user_by_email("alex@example.com")
    partner = db.fetch_user_by_email("sam@example.com")
    assert len(services.list_transactions(owner.id)) == 7
    assert services.dashboard(owner.id, 2024, 3).summary.expenses == Decimal("1078.65")
    assert len(services.list_budgets(owner.id)) == 2
    assert len(services.list_goals(owner.id)) == 1
    assert len(services.list_notifications(partner.id)) == 1
