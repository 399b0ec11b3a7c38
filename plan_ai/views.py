"""Display helpers shared by the dashboard and the static investor page."""

from __future__ import annotations

import calendar
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .extractor import (
    MonthlyFinancial,
    Number,
    PlanResult,
    SummaryMetrics,
    UserSnapshot,
    coerce_number,
    project_cash,
    round_half_up,
)

REVENUE_COLOR = "#3B82F6"
NET_COLOR = "#10B981"
CASH_COLOR = "#F59E0B"
TIER_COLORS = ["#0066cc", "#00cc66", "#ff6b35"]
EXPENSE_COLORS = ["#ff6b35", "#0066cc", "#00cc66", "#ffc107"]

MONTHLY_COLUMNS = ["month", "revenue", "marketing", "it", "founder", "hire", "expenses", "net", "cash"]
SCHEDULE_HEADERS = {
    "month": "Month",
    "revenue": "Revenue",
    "marketing": "Marketing",
    "it": "IT / Dev",
    "founder": "Founder",
    "hire": "New Hire",
    "net": "Net Cash Flow",
    "cash": "Ending Cash",
}


def format_currency(value: Any) -> str:
    """Whole euros with thousands separators, e.g. ``€1,234`` or ``-€500``."""
    amount = round_half_up(coerce_number(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}€{abs(amount):,}"


def format_compact_currency(value: Any) -> str:
    """Short euro amount for metric cards: ``€1.2M``, ``€45K``, ``€900``."""
    amount = coerce_number(value)
    if not amount:
        return "€0"
    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)
    # Pick the unit from the rounded figure so 999,999 reads €1.0M, not €1000K.
    thousands = round_half_up(magnitude / 1_000)
    if thousands >= 1_000:
        return f"{sign}€{magnitude / 1_000_000:.1f}M"
    if round_half_up(magnitude) >= 1_000:
        return f"{sign}€{thousands}K"
    return f"{sign}€{round_half_up(magnitude)}"


def format_number(value: Any) -> str:
    return f"{round_half_up(coerce_number(value)):,}"


def plan_totals(plan: PlanResult) -> Dict[str, Any]:
    """Headline figures for a plan."""
    revenue = sum(month.revenue for month in plan.monthly)
    expenses = sum(month.expenses for month in plan.monthly)
    latest_users: Optional[UserSnapshot] = plan.users[-1] if plan.users else None
    return {
        "revenue": revenue,
        "expenses": expenses,
        "net": revenue - expenses,
        "opening_funding": plan.metrics.opening_funding,
        "ending_cash": plan.monthly[-1].cash if plan.monthly else 0,
        "latest_users": latest_users,
        "total_users": latest_users.total if latest_users else 0,
    }


def expense_breakdown(plan: PlanResult) -> Dict[str, Number]:
    return {
        "Marketing": sum(month.marketing for month in plan.monthly),
        "IT/Development": sum(month.it for month in plan.monthly),
        "Founder Wage": sum(month.founder for month in plan.monthly),
        "New Hire Wages": sum(month.hire for month in plan.monthly),
    }


def monthly_frame(plan: PlanResult) -> pd.DataFrame:
    return pd.DataFrame([month.to_dict() for month in plan.monthly], columns=MONTHLY_COLUMNS)


def users_frame(plan: PlanResult) -> pd.DataFrame:
    frame = pd.DataFrame(
        [user.to_dict() for user in plan.users],
        columns=["month", "free", "freemium", "enterprise"],
    )
    frame["total"] = frame[["free", "freemium", "enterprise"]].sum(axis=1)
    return frame


def raw_sheet_frame(plan: PlanResult) -> pd.DataFrame:
    """The unprocessed monthly sheet with row 0 promoted to column names."""
    if len(plan.raw_rows) < 2:
        return pd.DataFrame()
    frame = pd.DataFrame([list(row) for row in plan.raw_rows[1:]])
    header = list(plan.raw_rows[0])
    columns = []
    for index in range(frame.shape[1]):
        name = header[index] if index < len(header) else None
        if name is None:
            name = "Metric" if index == 0 else f"Column {index}"
        columns.append(str(name))
    frame.columns = columns
    return frame


def demo_months(start_year: int = 2026, years: int = 3) -> List[str]:
    return [
        f"{calendar.month_abbr[month]} {str(year)[-2:]}"
        for year in range(start_year, start_year + years)
        for month in range(1, 13)
    ]


def demo_plan(seed: int = 0) -> PlanResult:
    """Placeholder 36-month plan shown when the workbook cannot be read.

    Revenue follows a noisy linear ramp; expenses are flat per category and
    user tiers grow linearly to their end-of-plan targets.
    """
    rng = np.random.default_rng(seed)
    months = demo_months()
    count = len(months)
    opening_funding = 100_000

    revenue = [int(np.floor(5_000 + i * 9_000 + rng.random() * 5_000)) for i in range(count)]
    marketing, it, founder, hire = 12_500, 9_000, 8_000, 15_000
    expenses = marketing + it + founder + hire
    nets = [value - expenses for value in revenue]
    cash = project_cash(opening_funding, nets)

    monthly = tuple(
        MonthlyFinancial(
            month=month,
            revenue=revenue[i],
            marketing=marketing,
            it=it,
            founder=founder,
            hire=hire,
            expenses=expenses,
            net=nets[i],
            cash=cash[i],
        )
        for i, month in enumerate(months)
    )

    ramp = np.linspace(1 / count, 1.0, count)
    users = tuple(
        UserSnapshot(
            month=month,
            free=round_half_up(35_200 * ramp[i]),
            freemium=round_half_up(8_500 * ramp[i]),
            enterprise=round_half_up(1_500 * ramp[i]),
        )
        for i, month in enumerate(months)
    )

    breakeven = next((month.month for month in monthly if month.net >= 0), None)
    lowest = min(monthly, key=lambda month: month.cash)
    metrics = SummaryMetrics(
        opening_funding=opening_funding,
        breakeven_month=breakeven,
        lowest_cash_month=lowest.month,
        lowest_cash_balance=lowest.cash,
        ending_cash_dec28=monthly[-1].cash,
    )
    return PlanResult(months=tuple(months), users=users, monthly=monthly, metrics=metrics)


def revenue_trend_figure(plan: PlanResult, months: int = 12) -> go.Figure:
    frame = monthly_frame(plan).head(months)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=frame["month"], y=frame["revenue"], name="Revenue",
        fill="tozeroy", line=dict(color=REVENUE_COLOR),
    ))
    fig.add_trace(go.Scatter(
        x=frame["month"], y=frame["net"], name="Cash Flow",
        fill="tozeroy", line=dict(color=NET_COLOR),
    ))
    fig.update_layout(title="Revenue & Cash Flow Trends", xaxis_title="Month", yaxis_title="€")
    return fig


def cash_balance_figure(plan: PlanResult, months: int = 12) -> go.Figure:
    frame = monthly_frame(plan).head(months)
    fig = px.bar(
        frame, x="month", y="cash",
        title="Monthly Cash Balance",
        labels={"month": "Month", "cash": "Cash Balance"},
        color_discrete_sequence=[REVENUE_COLOR],
    )
    return fig


def user_distribution_figure(plan: PlanResult) -> go.Figure:
    latest = plan.users[-1] if plan.users else UserSnapshot("", 0, 0, 0)
    return px.pie(
        values=[latest.free, latest.freemium, latest.enterprise],
        names=["Free Users", "Freemium Users", "Enterprise Users"],
        title="User Distribution",
        color_discrete_sequence=TIER_COLORS,
    )


def expense_breakdown_figure(plan: PlanResult) -> go.Figure:
    breakdown = expense_breakdown(plan)
    return px.pie(
        values=list(breakdown.values()),
        names=list(breakdown.keys()),
        title="Expense Breakdown",
        color_discrete_sequence=EXPENSE_COLORS,
    )


def projection_figure(plan: PlanResult) -> go.Figure:
    """Revenue, net cash flow and cash balance across the whole plan."""
    frame = monthly_frame(plan).rename(
        columns={"revenue": "Revenue", "net": "Net Cash Flow", "cash": "Cash Balance"}
    )
    fig = px.line(
        frame, x="month", y=["Revenue", "Net Cash Flow", "Cash Balance"],
        title=f"{len(frame)}-Month Revenue & Cash Flow Projection",
        markers=True,
        color_discrete_sequence=[REVENUE_COLOR, NET_COLOR, CASH_COLOR],
    )
    fig.update_layout(xaxis_title="Month", yaxis_title="€", legend_title_text="")
    return fig


def users_growth_figure(plan: PlanResult) -> go.Figure:
    frame = users_frame(plan).rename(
        columns={"free": "Free Users", "freemium": "Freemium Users", "enterprise": "Enterprise Users"}
    )
    return px.area(
        frame, x="month", y=["Free Users", "Freemium Users", "Enterprise Users"],
        title="Users by Tier",
        labels={"value": "Users", "month": "Month", "variable": "Tier"},
        color_discrete_sequence=TIER_COLORS,
    )
