import logging
from typing import Optional, Tuple

import streamlit as st

from plan_ai.config import CHART_VARIANTS, DashboardConfig, load_config
from plan_ai.extractor import PlanResult, extract_plan
from plan_ai.views import (
    cash_balance_figure,
    demo_plan,
    expense_breakdown,
    expense_breakdown_figure,
    format_compact_currency,
    format_currency,
    format_number,
    monthly_frame,
    plan_totals,
    projection_figure,
    raw_sheet_frame,
    revenue_trend_figure,
    user_distribution_figure,
    users_growth_figure,
    users_frame,
)

logger = logging.getLogger(__name__)

# Set page config
st.set_page_config(
    page_title="Financial Plan Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_data(show_spinner=False)
def load_plan(workbook_bytes: bytes) -> PlanResult:
    """Extract the plan once per distinct workbook."""
    return extract_plan(workbook_bytes)


def load_plan_or_demo(config: DashboardConfig, uploaded_file) -> Tuple[PlanResult, Optional[str], str]:
    """
    Load the plan from the upload or the configured workbook path.

    Args:
        config: Dashboard configuration
        uploaded_file: Streamlit upload, or None to use the configured path

    Returns:
        Tuple of (plan, error message or None, data source label)
    """
    try:
        if uploaded_file is not None:
            data, source = uploaded_file.getvalue(), uploaded_file.name
        else:
            data, source = config.workbook_path.read_bytes(), config.workbook_path.name
        return load_plan(data), None, source
    except Exception as e:
        logger.warning("Falling back to demo data: %s", e)
        return demo_plan(), f"Using demo data - {e}", "Demo data"


def render_chart(config: DashboardConfig, figure, native_data=None, native_kind: str = "line"):
    """Draw a chart with the configured renderer."""
    if config.chart_variant == "native" and native_data is not None:
        if native_kind == "bar":
            st.bar_chart(native_data)
        else:
            st.line_chart(native_data)
    else:
        st.plotly_chart(figure, use_container_width=True)


def render_overview(plan: PlanResult, config: DashboardConfig) -> None:
    totals = plan_totals(plan)
    latest_month = plan.months[-1] if plan.months else ""

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Revenue Projected", format_compact_currency(totals["revenue"]))
    with col2:
        st.metric("Total Expenses", format_compact_currency(totals["expenses"]))
    with col3:
        st.metric("Net Cash Flow", format_compact_currency(totals["net"]))
    with col4:
        st.metric(f"Total Users ({latest_month})", format_number(totals["total_users"]))

    frame = monthly_frame(plan).set_index("month")
    col1, col2 = st.columns([2, 1])
    with col1:
        render_chart(config, revenue_trend_figure(plan), frame[["revenue", "net"]].head(12))
    with col2:
        st.plotly_chart(user_distribution_figure(plan), use_container_width=True)

    col1, col2 = st.columns([2, 1])
    with col1:
        render_chart(config, cash_balance_figure(plan), frame[["cash"]].head(12), native_kind="bar")
    with col2:
        st.plotly_chart(expense_breakdown_figure(plan), use_container_width=True)


def render_financials(plan: PlanResult) -> None:
    st.header("Financial Schedule")
    frame = monthly_frame(plan)
    st.dataframe(
        frame.style.format({column: format_currency for column in frame.columns[1:]}),
        use_container_width=True,
        hide_index=True
    )

    st.subheader("Expense Totals")
    cols = st.columns(4)
    for i, (category, total) in enumerate(expense_breakdown(plan).items()):
        with cols[i % 4]:
            st.metric(category, format_compact_currency(total))


def render_users(plan: PlanResult, config: DashboardConfig) -> None:
    st.header("User Growth Path")
    frame = users_frame(plan)
    render_chart(
        config,
        users_growth_figure(plan),
        frame.set_index("month")[["free", "freemium", "enterprise"]],
    )
    st.dataframe(frame, use_container_width=True, hide_index=True)


def render_projections(plan: PlanResult, config: DashboardConfig) -> None:
    metrics = plan.metrics
    frame = monthly_frame(plan).set_index("month")
    render_chart(config, projection_figure(plan), frame[["revenue", "net", "cash"]])

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Breakeven Month", str(metrics.breakeven_month) if metrics.breakeven_month is not None else "TBC")
    with col2:
        st.metric(
            "Lowest Cash Point",
            str(metrics.lowest_cash_month) if metrics.lowest_cash_month is not None else "—",
            help=f"Minimum cash reserve of {format_currency(metrics.lowest_cash_balance)}"
        )
    with col3:
        st.metric("Ending Cash (Dec-28)", format_currency(metrics.ending_cash_dec28))


def main():
    """Main Streamlit application for the financial plan dashboard."""
    st.title("📊 Financial Dashboard")
    st.markdown("36-Month Financial Planning & Analysis")

    if "chart_variant" not in st.session_state:
        st.session_state.chart_variant = None

    config = load_config(
        query_value=st.query_params.get("chart"),
        session_value=st.session_state.chart_variant,
    )

    with st.sidebar:
        uploaded_file = st.file_uploader("Plan workbook", type=["xlsx", "xls"])
        selected = st.selectbox(
            "Chart renderer",
            CHART_VARIANTS,
            index=CHART_VARIANTS.index(config.chart_variant),
        )
        if selected != config.chart_variant:
            st.session_state.chart_variant = selected
            config.chart_variant = selected

    with st.spinner("Loading financial plan..."):
        plan, error, source = load_plan_or_demo(config, uploaded_file)

    if error:
        st.warning(f"⚠️ {error}")

    totals = plan_totals(plan)
    breakeven = plan.metrics.breakeven_month if plan.metrics.breakeven_month is not None else "TBC"
    st.caption(
        f"Breakeven: {breakeven} | Total Projected Revenue: {format_compact_currency(totals['revenue'])}"
    )

    tab1, tab2, tab3, tab4, tab5 = st.tabs(
        ["📊 Overview", "💶 Financials", "👥 Users", "📈 Projections", "🔍 Source Sheet"]
    )

    with tab1:
        render_overview(plan, config)

    with tab2:
        render_financials(plan)

    with tab3:
        render_users(plan, config)

    with tab4:
        render_projections(plan, config)

    with tab5:
        st.header("Source Sheet")
        raw = raw_sheet_frame(plan)
        if raw.empty:
            st.info("No source sheet available for demo data.")
        else:
            st.dataframe(raw, use_container_width=True, hide_index=True)

    st.caption(f"Data source: {source}")


if __name__ == "__main__":
    main()
