"""Top‑level package for the Finance Tracker.

The pure rules live in small modules that do no I/O:

* ``amounts`` – amount signs, rounding and currency formatting
* ``budgets`` – spend-vs-budget progress and status tiers
* ``goals`` – savings goal progress and the goal-achieved event
* ``sharing`` – budget sharing roles and permission checks
* ``dashboard`` – the per-month dashboard view model

``db`` stores records in SQLite, ``services`` wires the rules to storage
for an acting user, ``csv_io`` imports and exports transactions and
``visualization`` turns dashboard data into Plotly figures.  The
Streamlit page is started with:

```bash
streamlit run finance_tracker/app.py
```
"""

from . import amounts  # noqa: F401  # re-exported for convenience
from . import budgets  # noqa: F401
from . import dashboard  # noqa: F401
from . import goals  # noqa: F401
from . import sharing  # noqa: F401

__all__ = ["amounts", "budgets", "dashboard", "goals", "sharing"]
