"""Plotly visualisation helpers for the finance tracker dashboard.

Each function accepts part of a :class:`~finance_tracker.dashboard.DashboardView`
and returns a `plotly.graph_objects.Figure` that Streamlit can render via
``st.plotly_chart``.  Empty inputs produce an empty figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budgets import OVER, WARNING
from .dashboard import BudgetProgressRow, CategorySpending, TrendPoint

OVER_COLOR = "#EF4444"
WARNING_COLOR = "#F59E0B"
INCOME_COLOR = "#10B981"
EXPENSE_COLOR = "#EF4444"


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def budget_bar_color(row: BudgetProgressRow) -> str:
    """Bar colour for a budget: red when over, amber on warning, else the category colour."""
    status = row.progress.status
    if status == OVER:
        return OVER_COLOR
    if status == WARNING:
        return WARNING_COLOR
    return row.category.color


def create_spending_donut(spending: Sequence[CategorySpending], title: str | None = None) -> go.Figure:
    """Generate a donut chart of expenses per category.

    Parameters
    ----------
    spending : sequence of CategorySpending
        Output of :func:`finance_tracker.dashboard.spending_by_category`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Donut chart coloured with each category's colour.
    """
    if not any(item.amount > 0 for item in spending):
        return _empty_figure()
    df = pd.DataFrame(
        {
            "Category": [item.category.name for item in spending],
            "Amount": [float(item.amount) for item in spending],
        }
    )
    colors = {item.category.name: item.category.color for item in spending}
    fig = px.pie(
        df,
        names="Category",
        values="Amount",
        color="Category",
        color_discrete_map=colors,
        hole=0.5,
    )
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_trend_chart(trend: Sequence[TrendPoint], title: str | None = None) -> go.Figure:
    """Generate income and expense lines over the trailing months.

    Parameters
    ----------
    trend : sequence of TrendPoint
        Output of :func:`finance_tracker.dashboard.monthly_trend`, oldest
        first.
    title : str, optional
        Chart title.
    """
    if not trend:
        return _empty_figure()
    df = pd.DataFrame(
        {
            "Month": [p.label for p in trend],
            "Income": [float(p.income) for p in trend],
            "Expenses": [float(p.expenses) for p in trend],
        }
    )
    long_df = df.melt(id_vars="Month", var_name="Series", value_name="Amount")
    fig = px.line(
        long_df,
        x="Month",
        y="Amount",
        color="Series",
        markers=True,
        color_discrete_map={"Income": INCOME_COLOR, "Expenses": EXPENSE_COLOR},
    )
    fig.update_layout(
        title=title or "Income vs expenses",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_budget_progress_chart(rows: Sequence[BudgetProgressRow], title: str | None = None) -> go.Figure:
    """Generate horizontal progress bars, one per budget.

    Bar length is the display percentage (capped at 100); the hover text
    shows the unclamped percentage and the amounts.
    """
    if not rows:
        return _empty_figure()
    fig = go.Figure(
        go.Bar(
            x=[float(r.progress.display_percentage) for r in rows],
            y=[r.category.name for r in rows],
            orientation="h",
            marker_color=[budget_bar_color(r) for r in rows],
            customdata=[
                [float(r.progress.percentage), float(r.progress.spent), float(r.budget.amount)]
                for r in rows
            ],
            hovertemplate="%{y}: %{customdata[0]:.2f}%<br>Spent %{customdata[1]:,.2f} of %{customdata[2]:,.2f}"
            "<extra></extra>",
        )
    )
    fig.update_layout(
        title=title or "Budget progress",
        xaxis=dict(title="Used (%)", range=[0, 100]),
        yaxis=dict(autorange="reversed"),
    )
    return fig
