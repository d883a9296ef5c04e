"""Streamlit page for the finance tracker dashboard.

Run with::

    streamlit run finance_tracker/app.py
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd
import streamlit as st

# Add project root to path for imports when run as a script
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from finance_tracker import config, csv_io, db, services  # noqa: E402
from finance_tracker.amounts import format_currency  # noqa: E402
from finance_tracker.errors import FinanceError  # noqa: E402
from finance_tracker.visualization import (  # noqa: E402
    create_budget_progress_chart,
    create_spending_donut,
    create_trend_chart,
)

logger = logging.getLogger(__name__)


def _money(value) -> str:
    return format_currency(value, config.DEFAULT_CURRENCY)


def _sidebar():
    st.sidebar.subheader("👤 User")
    email = st.sidebar.text_input("Email", value=st.session_state.get("email", ""))
    user = db.fetch_user_by_email(email.strip().lower()) if email else None
    if email and user is None and st.sidebar.button("Create account"):
        try:
            user = services.register_user(email)
        except FinanceError as exc:
            st.sidebar.error(exc.message)
    st.session_state.email = email

    today = date.today()
    st.sidebar.subheader("📅 Period")
    year = st.sidebar.number_input("Year", min_value=2000, max_value=2100, value=today.year, step=1)
    month = st.sidebar.selectbox("Month", list(range(1, 13)), index=today.month - 1)

    if user is not None:
        unread = services.unread_count(user.id)
        if unread:
            st.sidebar.info(f"🔔 {unread} unread notification(s)")
        uploaded = st.sidebar.file_uploader("Import transactions (CSV)", type=["csv"])
        if uploaded is not None and st.sidebar.button("Import"):
            try:
                result = csv_io.import_transactions(user.id, uploaded.getvalue())
            except FinanceError as exc:
                st.sidebar.error(exc.message)
            else:
                st.sidebar.success(result.message)
                for error in result.errors:
                    st.sidebar.text(f"  • {error}")
        if st.sidebar.button("Export transactions"):
            target = config.EXPORTS_DIR / f"transactions-{user.id}-{today.isoformat()}.csv"
            csv_io.export_csv(user.id, path=target)
            st.sidebar.success(f"Saved {target.name}")
    return user, int(year), int(month)


def _render_dashboard(user, year: int, month: int) -> None:
    logger.debug("Rendering dashboard for user %s, %04d-%02d", user.id, year, month)
    view = services.dashboard(user.id, year, month)

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", _money(view.summary.income))
    col2.metric("Expenses", _money(view.summary.expenses))
    col3.metric("Balance", _money(view.summary.balance))

    left, right = st.columns(2)
    with left:
        st.plotly_chart(create_spending_donut(view.spending_by_category), use_container_width=True)
    with right:
        st.plotly_chart(create_trend_chart(view.monthly_trend), use_container_width=True)

    st.subheader("Budgets")
    if view.budget_progress:
        st.plotly_chart(create_budget_progress_chart(view.budget_progress), use_container_width=True)
    if view.budgets:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Period": f"{b.budget.year:04d}-{b.budget.month:02d}",
                        "Category": b.category.name,
                        "Amount": _money(b.budget.amount),
                        "Shared by": b.shared_by.display_name if b.shared_by else "",
                        "Access": b.role.value,
                    }
                    for b in view.budgets
                ]
            ),
            use_container_width=True,
        )
    else:
        st.info("No budgets set yet.")

    st.subheader("🎯 Goals")
    if view.goals:
        for row in view.goals:
            st.progress(float(row.progress.display_percentage) / 100, text=row.goal.title)
            st.caption(
                f"{_money(row.progress.current_amount)} of {_money(row.goal.target_amount)}"
                f" ({row.progress.percentage}%)"
            )
    else:
        st.info("No goals for this month.")

    st.subheader("Recent transactions")
    if view.recent_transactions:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Date": t.date.isoformat(),
                        "Description": t.description or "",
                        "Type": t.type,
                        "Amount": format_currency(t.amount, t.currency),
                    }
                    for t in view.recent_transactions
                ]
            ),
            use_container_width=True,
        )
    else:
        st.info("No transactions recorded yet.")


def main() -> None:
    st.set_page_config(
        page_title="Finance Tracker",
        page_icon="💰",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    logging.basicConfig(level=logging.INFO)
    config.ensure_data_directories()
    db.init_db()

    user, year, month = _sidebar()
    st.title("💰 Finance Tracker")
    if user is None:
        st.info("Enter your email in the sidebar to load your dashboard.")
        return
    _render_dashboard(user, year, month)


if __name__ == "__main__":
    main()
