import io
from typing import Dict, List, Optional

import pandas as pd
import pytest

MONTHS_12 = ["Jan 26", "Feb 26", "Mar 26", "Apr 26", "May 26", "Jun 26",
             "Jul 26", "Aug 26", "Sep 26", "Oct 26", "Nov 26", "Dec 26"]


def plan_rows(
    months: Optional[List[str]] = None,
    values: Optional[Dict[str, list]] = None,
    opening: object = 100000,
    drop: tuple = (),
    extra_rows: Optional[List[list]] = None,
) -> List[list]:
    """Build a monthly-sheet grid: header row plus one row per label."""
    months = MONTHS_12 if months is None else months
    values = values or {}
    count = len(months)
    series = {
        "Free Users": [100 * (i + 1) for i in range(count)],
        "Freemium Users": [10 * (i + 1) for i in range(count)],
        "Enterprise Users": [i + 1 for i in range(count)],
        "Total Revenue €": [10000] * count,
        "Marketing €": [2000] * count,
        "IT Supplier (Dev/Hosting) €": [0] * count,
        "Founder Wage €": [0] * count,
        "New Hire Wage €": [0] * count,
    }
    series.update(values)

    rows = [[None] + list(months)]
    for label, row_values in series.items():
        if label not in drop:
            rows.append([label] + list(row_values))
    if "Opening Funding Balance €" not in drop:
        rows.append(["Opening Funding Balance €", opening])
    rows.extend(extra_rows or [])
    return rows


def summary_rows() -> List[list]:
    return [
        ["Metric", "Value"],
        ["Breakeven Month", "Aug 26"],
        ["Lowest Cash Month", "Mar 26"],
        ["Lowest Cash Balance €", "€12,500"],
        ["Ending Cash Dec-28 €", 250000],
    ]


def workbook_bytes(sheets: Dict[str, List[list]]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
    return buffer.getvalue()


@pytest.fixture()
def monthly_rows():
    return plan_rows()


@pytest.fixture()
def plan_workbook():
    """Minimal valid workbook with both sheets, as xlsx bytes."""
    return workbook_bytes({"Financial Plan": plan_rows(), "Summary": summary_rows()})
