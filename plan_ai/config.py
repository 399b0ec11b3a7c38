"""Dashboard configuration resolved from the environment and the request."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_WORKBOOK_PATH = Path("data/consultantcloud_36m_financial_plan.xlsx")

CHART_VARIANTS = ("plotly", "native")
DEFAULT_CHART_VARIANT = "plotly"


@dataclass
class DashboardConfig:
    workbook_path: Path
    chart_variant: str = DEFAULT_CHART_VARIANT


def resolve_chart_variant(
    query_value: Optional[str] = None,
    session_value: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the chart renderer.

    Order of precedence: ``?chart=`` query parameter > session choice >
    ``PLAN_CHART_VARIANT`` > ``plotly``. Unrecognized values fall back to
    ``plotly``.
    """
    env = os.environ if env is None else env
    value = (query_value or session_value or env.get("PLAN_CHART_VARIANT") or DEFAULT_CHART_VARIANT)
    value = value.strip().lower()
    return value if value in CHART_VARIANTS else DEFAULT_CHART_VARIANT


def load_config(
    query_value: Optional[str] = None,
    session_value: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DashboardConfig:
    env = os.environ if env is None else env
    workbook_path = Path(env.get("PLAN_WORKBOOK_PATH") or DEFAULT_WORKBOOK_PATH)
    return DashboardConfig(
        workbook_path=workbook_path,
        chart_variant=resolve_chart_variant(query_value, session_value, env),
    )
