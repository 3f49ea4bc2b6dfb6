"""Tests for country detection, search reports and the alert scheduler."""
from __future__ import annotations

from datetime import datetime, timezone

import requests

from jobnado.geo import detect_country
from jobnado.opportunities import simulated_opportunities
from jobnado.report import build_search_report, write_search_report
from run_alerts import next_run


def test_first_answering_provider_wins():
    calls = []

    def failing():
        calls.append("failing")
        raise requests.ConnectionError("blocked")

    def blank():
        calls.append("blank")
        return "  "

    def good():
        calls.append("good")
        return "Canada"

    def never():
        calls.append("never")
        return "France"

    assert detect_country([failing, blank, good, never]) == "Canada"
    assert calls == ["failing", "blank", "good"]


def test_no_provider_answers():
    def bad_json():
        raise ValueError("not json")

    assert detect_country([bad_json]) is None
    assert detect_country([]) is None


def test_report_contents(analysis, job):
    md = build_search_report(analysis, [job], "Data Analyst", "Canada")
    assert md.startswith("# Job Search Report — Data Analyst in Canada")
    assert "**Level:** Mid-Senior" in md
    assert "`(\"Data Analyst\" OR \"BI Engineer\") AND SQL`" in md
    assert "| 1 | Data Analyst | Acme Corp | 88% | [Acme](https://acme.example/job/1) |" in md
    assert "simulated" not in md


def test_report_flags_simulated(analysis, tmp_path):
    md = build_search_report(analysis, simulated_opportunities(analysis, "Canada", "Data Analyst"),
                             "Data Analyst", "Canada")
    assert "Live search was unavailable" in md
    path = write_search_report(md, directory=tmp_path)
    assert path.name.startswith("search_") and path.suffix == ".md"
    assert path.read_text(encoding="utf-8") == md


def test_next_run_later_today():
    now = datetime(2026, 10, 17, 6, 30, tzinfo=timezone.utc)
    assert next_run(8, now) == datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)


def test_next_run_rolls_to_tomorrow():
    now = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)
    assert next_run(8, now) == datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)
