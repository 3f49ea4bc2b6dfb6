#!/usr/bin/env python3
"""Analyze a CV and search live openings from the command line.

Usage:
  python run_agent.py resume.pdf --country "Germany" [--role "Data Analyst"] [--report] [--cover-letters 2]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobnado.config import ConfigError, load_settings
from jobnado.cv_input import load_cv
from jobnado.geo import detect_country
from jobnado.log import get_logger
from jobnado.artifacts import save_cover_letter
from jobnado.report import build_search_report, write_search_report
from jobnado.services import build_artifacts, build_session
from jobnado.session import YamlSessionStore

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Analyze a CV and find matching job openings.")
    p.add_argument("cv", type=Path, help="CV file (.pdf, .docx, .txt, .png, .jpg)")
    p.add_argument("--country", help="target country (detected from IP when omitted)")
    p.add_argument("--role", help="role to search (defaults to the top suggested role)")
    p.add_argument("--report", action="store_true", help="write a markdown report to reports/")
    p.add_argument("--cover-letters", type=int, default=0, metavar="N",
                   help="write cover letters for the top N live results to data/")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if not args.cv.exists():
        log.error("CV not found: %s", args.cv)
        return 1

    settings = load_settings()
    try:
        session = build_session(settings, store=YamlSessionStore())
    except ConfigError as exc:
        log.error("%s", exc)
        return 1
    session.reset()
    session.set_country(args.country or detect_country() or settings.default_country)

    try:
        cv_input = load_cv(args.cv)
    except (ValueError, RuntimeError, OSError) as exc:
        log.error("Could not read %s: %s", args.cv.name, exc)
        return 1

    analysis = session.analyze(cv_input)
    if analysis is None:
        log.error("%s", session.state.error)
        return 1

    log.info("Suggested roles: %s", ", ".join(analysis.suggested_roles))
    for b in analysis.boolean_strings:
        log.info("  [%s] %s", b.label, b.query)

    jobs = session.search(args.role)
    for job in jobs:
        tag = " (simulated)" if job.is_simulated else ""
        log.info("  %3d%%  %s @ %s%s", job.match_score, job.title, job.company, tag)
        log.info("        %s", job.application_url)

    if args.report:
        content = build_search_report(analysis, jobs, session.state.selected_role or "", session.state.country)
        write_search_report(content)

    live = [j for j in jobs if not j.is_simulated][: max(args.cover_letters, 0)]
    if live:
        artifacts = build_artifacts(settings)
        for job in live:
            save_cover_letter(job, artifacts.generate_cover_letter(job, analysis))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
