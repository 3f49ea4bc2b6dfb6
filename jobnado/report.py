"""Markdown report of one search run."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from jobnado.config import REPORTS_DIR
from jobnado.log import get_logger
from jobnado.models import CVAnalysis, JobOpportunity

log = get_logger(__name__)


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Link"


def _clip(text: str, width: int) -> str:
    return text[:width] + ("…" if len(text) > width else "")


def build_search_report(
    analysis: CVAnalysis,
    opportunities: list[JobOpportunity],
    role: str,
    country: str,
) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    simulated = any(o.is_simulated for o in opportunities)
    lines: list[str] = [f"# Job Search Report — {role} in {country} ({date})", ""]

    lines.append("## Profile")
    lines.append("")
    lines.append(f"- **Level:** {analysis.experience_level}")
    lines.append(f"- **Hard skills:** {', '.join(analysis.hard_skills[:10])}")
    lines.append(f"- **Soft skills:** {', '.join(analysis.soft_skills[:6])}")
    lines.append(f"- **Suggested roles:** {', '.join(analysis.suggested_roles)}")
    if analysis.adjacent_industries:
        lines.append(f"- **Adjacent industries:** {', '.join(analysis.adjacent_industries)}")
    lines.append("")

    if analysis.boolean_strings:
        lines.append("## Boolean Search Strings")
        lines.append("")
        for b in analysis.boolean_strings:
            lines.append(f"### {b.label}")
            lines.append(f"`{b.query}`")
            lines.append(f"_{b.explanation}_")
            lines.append("")

    lines.append("## Opportunities")
    lines.append("")
    if simulated:
        lines.append("> Live search was unavailable; these are simulated leads with search links.")
        lines.append("")
    lines.append("| # | Role | Company | Match | Apply |")
    lines.append("|--:|------|---------|------:|-------|")
    for i, o in enumerate(opportunities, 1):
        url = o.application_url or ""
        link = f"[{_short_url_label(url)}]({url})" if url else "—"
        lines.append(f"| {i} | {_clip(o.title, 40)} | {_clip(o.company, 24)} | {o.match_score}% | {link} |")
    lines.append("")
    for o in opportunities:
        lines.append(f"- **{o.title} @ {o.company}:** {o.reasoning}")
    lines.append("")

    log.info("Built search report: %d opportunities (simulated=%s)", len(opportunities), simulated)
    return "\n".join(lines)


def write_search_report(content: str, directory: Path | None = None) -> Path:
    directory = directory or REPORTS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    path = directory / f"search_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
