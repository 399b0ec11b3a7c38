#!/usr/bin/env python3
"""
Static investor page

Renders the extracted plan into a self-contained HTML document so every figure
is readable without running the dashboard: headline cards, the full financial
schedule, the user growth table, narrative highlights and the plan itself as
embedded JSON.

Usage:
  python -m plan_ai.static_page data/consultantcloud_36m_financial_plan.xlsx \
      -o build/index.html --title "ConsultantCloud Funding Plan"

Extraction errors are not replaced by demo data here; a build with a broken
workbook fails.
"""

from __future__ import annotations

import argparse
import html
import json
import logging
import sys
import zipfile
from pathlib import Path
from typing import Any, List, Optional

from .errors import PlanExtractionError
from .extractor import PlanResult, extract_plan
from .views import (
    SCHEDULE_HEADERS,
    format_currency,
    format_number,
    monthly_frame,
    plan_totals,
    users_frame,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "ConsultantCloud Funding Plan"

PAGE_STYLE = """
body { font-family: system-ui, sans-serif; margin: 0 auto; max-width: 1100px; padding: 2rem; color: #1f2937; }
.grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); gap: 1rem; }
.card { border: 1px solid #e5e7eb; border-radius: 12px; padding: 1rem; }
.card__label { font-size: .8rem; text-transform: uppercase; color: #6b7280; }
.card__value { font-size: 1.6rem; font-weight: 700; margin: .4rem 0; }
.table-wrapper { overflow-x: auto; }
table { border-collapse: collapse; width: 100%; }
th, td { padding: .4rem .6rem; border-bottom: 1px solid #e5e7eb; text-align: right; }
th:first-child, td:first-child { text-align: left; }
"""


def _card(label: str, value: str, context: str) -> str:
    return (
        '<article class="card">'
        f'<div class="card__label">{html.escape(label)}</div>'
        f'<div class="card__value">{html.escape(value)}</div>'
        f'<p class="card__context">{html.escape(context)}</p>'
        "</article>"
    )


def _section(anchor: str, title: str, description: str, body: str) -> str:
    return (
        f'<section class="section" aria-labelledby="{anchor}">'
        f'<header class="section__header"><h2 id="{anchor}">{html.escape(title)}</h2>'
        f'<p class="section__description">{html.escape(description)}</p></header>'
        f"{body}</section>"
    )


def schedule_table(plan: PlanResult) -> str:
    frame = monthly_frame(plan)[list(SCHEDULE_HEADERS)].copy()
    for column in frame.columns[1:]:
        frame[column] = frame[column].map(format_currency)
    frame = frame.rename(columns=SCHEDULE_HEADERS)
    return frame.to_html(index=False, border=0)


def users_table(plan: PlanResult) -> str:
    frame = users_frame(plan)
    for column in ("free", "freemium", "enterprise", "total"):
        frame[column] = frame[column].map(format_number)
    frame = frame.rename(columns={
        "month": "Month",
        "free": "Free Users",
        "freemium": "Freemium Users",
        "enterprise": "Enterprise Users",
        "total": "Total",
    })
    return frame.to_html(index=False, border=0)


def plan_json(plan: PlanResult) -> str:
    """Plan as JSON safe to embed inside a ``<script>`` element."""
    payload = json.dumps(plan.to_dict(), default=str, ensure_ascii=False)
    return payload.replace("</", "<\\/")


def render_static_page(plan: PlanResult, title: str = DEFAULT_TITLE) -> str:
    """Render the complete investor page for ``plan``."""
    totals = plan_totals(plan)
    metrics = plan.metrics
    latest = totals["latest_users"]
    months = len(plan.monthly)

    if latest is not None:
        user_context = (
            f"Breakdown: {format_number(latest.free)} free, {format_number(latest.freemium)} freemium, "
            f"{format_number(latest.enterprise)} enterprise."
        )
    else:
        user_context = "No user data in plan."

    headline = "".join([
        _card(f"Total revenue ({months} months)", format_currency(totals["revenue"]),
              "Revenue compounds on product-led growth tied to certifications and enterprise adoption."),
        _card("Total operating spend", format_currency(totals["expenses"]),
              "Marketing, engineering, founder and hiring costs mapped month-by-month."),
        _card("Ending cash", format_currency(totals["ending_cash"]),
              f"Starting from an opening balance of {format_currency(metrics.opening_funding)} "
              "and tracked after every net cash flow."),
        _card("Users at scale", format_number(totals["total_users"]), user_context),
    ])

    highlights = "".join([
        _card("Breakeven Month",
              "TBC" if metrics.breakeven_month is None else str(metrics.breakeven_month),
              "Path to profitability is modelled from operating costs and growth rates in the schedule."),
        _card("Lowest cash point",
              "—" if metrics.lowest_cash_month is None else str(metrics.lowest_cash_month),
              f"Minimum cash reserve of {format_currency(metrics.lowest_cash_balance)} "
              "informs the fundraising ask and buffer."),
        _card("Ending cash (Dec-28)", format_currency(metrics.ending_cash_dec28),
              "Cash position at the close of the plan."),
    ])

    sections: List[str] = [
        f'<section class="hero"><h1>{html.escape(title)}</h1>'
        f"<p>Every figure on this page is rendered at build time from the {months}-month plan.</p></section>",
        f'<section class="grid" aria-label="Headline metrics">{headline}</section>',
        _section("financial-schedule", "Financial Schedule",
                 "Revenue, expense categories, net cash flow and ending cash balance per month.",
                 f'<div class="table-wrapper">{schedule_table(plan)}</div>'),
        _section("user-growth", "User Growth Path",
                 "Free, freemium and enterprise users per month.",
                 f'<div class="table-wrapper">{users_table(plan)}</div>'),
        _section("narrative-highlights", "Narrative Highlights",
                 "Key figures from the summary sheet of the operating model.",
                 f'<div class="grid">{highlights}</div>'),
    ]

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{html.escape(title)}</title>"
        '<meta name="robots" content="index, follow">'
        f"<style>{PAGE_STYLE}</style></head><body><main>"
        + "".join(sections)
        + "</main>"
        f'<script type="application/json" id="plan-data">{plan_json(plan)}</script>'
        "</body></html>\n"
    )


def build_static_page(workbook: Any, output: Path, title: str = DEFAULT_TITLE) -> Path:
    """Extract ``workbook`` and write the rendered page to ``output``."""
    plan = extract_plan(workbook)
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_static_page(plan, title=title), encoding="utf-8")
    logger.info("Wrote %s (%d months)", output, len(plan.monthly))
    return output


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render the static investor page from a plan workbook")
    parser.add_argument("workbook", type=Path, help="Path to the plan .xlsx workbook")
    parser.add_argument("-o", "--output", type=Path, default=Path("build/index.html"))
    parser.add_argument("--title", default=DEFAULT_TITLE)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        build_static_page(args.workbook, args.output, title=args.title)
    except (PlanExtractionError, ValueError, zipfile.BadZipFile, FileNotFoundError) as e:
        logger.error("Could not build page: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
