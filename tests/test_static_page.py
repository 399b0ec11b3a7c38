import json
import re

import pytest

from conftest import plan_rows, summary_rows, workbook_bytes
from plan_ai.extractor import extract_plan
from plan_ai.static_page import build_static_page, main, render_static_page


@pytest.fixture()
def plan(plan_workbook):
    return extract_plan(plan_workbook)


def embedded_plan(page):
    match = re.search(r'<script type="application/json" id="plan-data">(.*?)</script>', page, re.S)
    return json.loads(match.group(1))


def test_page_contains_schedule_and_highlights(plan):
    page = render_static_page(plan)

    assert page.startswith("<!DOCTYPE html>")
    assert "Financial Schedule" in page
    assert "User Growth Path" in page
    assert "€108,000" in page
    assert "Aug 26" in page
    assert "€12,500" in page
    assert "Total revenue (12 months)" in page


def test_page_embeds_plan_json(plan):
    data = embedded_plan(render_static_page(plan))

    assert data["months"][0] == "Jan 26"
    assert data["monthly"][0]["net"] == 8000
    assert len(data["users"]) == 12


def test_missing_summary_shows_placeholders():
    plan = extract_plan({"Financial Plan": plan_rows()})
    page = render_static_page(plan)

    assert "TBC" in page
    assert "—" in page


def test_title_is_escaped(plan):
    page = render_static_page(plan, title="Plan <2026> & beyond")

    assert "Plan &lt;2026&gt; &amp; beyond" in page
    assert "<2026>" not in page


def test_build_static_page_writes_file(tmp_path, plan_workbook):
    workbook = tmp_path / "plan.xlsx"
    workbook.write_bytes(plan_workbook)
    output = tmp_path / "build" / "index.html"

    result = build_static_page(workbook, output)

    assert result == output
    assert "Financial Schedule" in output.read_text(encoding="utf-8")


def test_cli_success(tmp_path, plan_workbook):
    workbook = tmp_path / "plan.xlsx"
    workbook.write_bytes(plan_workbook)
    output = tmp_path / "index.html"

    assert main([str(workbook), "-o", str(output)]) == 0
    assert output.exists()


def test_cli_fails_on_bad_workbook(tmp_path, capsys):
    rows = plan_rows(drop=("Founder Wage €",))
    workbook = tmp_path / "plan.xlsx"
    workbook.write_bytes(workbook_bytes({"Financial Plan": rows, "Summary": summary_rows()}))
    output = tmp_path / "index.html"

    assert main([str(workbook), "-o", str(output)]) == 1
    assert "Founder Wage €" in capsys.readouterr().err
    assert not output.exists()


@pytest.mark.parametrize("content", [b"not a workbook", b"PK\x03\x04truncated"])
def test_cli_fails_on_unreadable_file(tmp_path, capsys, content):
    workbook = tmp_path / "plan.xlsx"
    workbook.write_bytes(content)
    output = tmp_path / "index.html"

    assert main([str(workbook), "-o", str(output)]) == 1
    assert "Error:" in capsys.readouterr().err
    assert not output.exists()
