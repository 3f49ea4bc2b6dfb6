"""Scheduled alert sweep: re-run a grounded search per active alert and email the hits.

Alerts are processed one at a time; a failure on one alert is logged and
recorded, and the sweep moves on to the next.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from jobnado.alerts import AlertStore
from jobnado.grounded import GroundedSearchClient
from jobnado.log import get_logger
from jobnado.mailer import EmailPayload, EmailSender, render_alert_email
from jobnado.models import Alert
from jobnado.opportunities import google_search_url

log = get_logger(__name__)

ALERT_PROMPT = """\
Find 3 LIVE, active job listings for the role of "{role}" in "{country}".
Prioritize jobs posted in the last 24 hours.
Return ONLY a JSON array of objects with keys: title, company, url.
Example: [{{"title": "Software Engineer", "company": "Google", "url": "..."}}]
"""

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


@dataclass
class SweepResult:
    email: str
    role: str
    status: str
    jobs_found: int = 0
    error: str = ""


def fallback_jobs(role: str, country: str) -> list[dict[str, str]]:
    return [{
        "title": f"{role} Opportunities",
        "company": "Various",
        "url": google_search_url(f"{role} jobs in {country}"),
    }]


def extract_job_array(text: str, role: str, country: str) -> list[dict[str, Any]]:
    """Decode the bracketed JSON array inside *text*.

    Anything undecodable yields a single generic search link rather than
    nothing, so a chatty or off-schema model never silences an alert. An
    explicit ``[]`` stays empty.
    """
    m = _ARRAY_RE.search(text or "")
    if not m:
        return fallback_jobs(role, country)
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as exc:
        log.debug("Alert response JSON invalid (%s), using fallback link", exc)
        return fallback_jobs(role, country)
    if not isinstance(data, list):
        return fallback_jobs(role, country)
    jobs: list[dict[str, Any]] = []
    for item in data:
        if isinstance(item, dict) and str(item.get("title", "")).strip():
            jobs.append({
                "title": str(item["title"]).strip(),
                "company": str(item.get("company") or "").strip(),
                "url": str(item.get("url") or "").strip()
                or google_search_url(f"{item['title']} {item.get('company', '')} {country}"),
            })
    if data and not jobs:
        log.debug("Alert response array had no usable entries, using fallback link")
        return fallback_jobs(role, country)
    return jobs


class AlertSweepJob:
    def __init__(
        self,
        store: AlertStore,
        search_client: GroundedSearchClient,
        sender: EmailSender | None,
        from_addr: str,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.search_client = search_client
        self.sender = sender
        self.from_addr = from_addr
        self.now = now

    def find_jobs(self, alert: Alert) -> list[dict[str, Any]]:
        result = self.search_client.search(ALERT_PROMPT.format(role=alert.role, country=alert.country))
        return extract_job_array(result.text, alert.role, alert.country)

    def process(self, alert: Alert) -> SweepResult:
        log.info("Checking jobs for: %s in %s", alert.role, alert.country)
        jobs = self.find_jobs(alert)
        if not jobs:
            log.info("No jobs for %s — skipping", alert.email)
            return SweepResult(alert.email, alert.role, "skipped")

        if self.sender is None:
            return SweepResult(alert.email, alert.role, "skipped (no email sender)", len(jobs))

        ok, info = self.sender.send(
            EmailPayload(
                from_addr=self.from_addr,
                to=alert.email,
                subject=f"JobNado Alert: {len(jobs)} New {alert.role} Jobs",
                html=render_alert_email(alert.role, alert.country, jobs),
            )
        )
        if not ok:
            return SweepResult(alert.email, alert.role, "failed", len(jobs), info)

        if not alert.id:
            return SweepResult(alert.email, alert.role, "sent", len(jobs))
        try:
            self.store.update_last_alerted(alert.id, self.now())
        except Exception as exc:
            log.error("Sent alert %s but could not update last_alerted_at: %s", alert.id, exc)
            return SweepResult(alert.email, alert.role, "sent", len(jobs), str(exc)[:150])
        return SweepResult(alert.email, alert.role, "sent", len(jobs))

    def run(self) -> list[SweepResult]:
        alerts = self.store.select_active()
        log.info("Processing %d alerts...", len(alerts))
        results: list[SweepResult] = []
        for alert in alerts:
            try:
                results.append(self.process(alert))
            except Exception as exc:
                log.error("Alert %s (%s) failed: %s", alert.id, alert.email, exc)
                results.append(SweepResult(alert.email, alert.role, "error", error=str(exc)[:150]))
        sent = sum(1 for r in results if r.status == "sent")
        log.info("Sweep complete — alerts=%d, sent=%d", len(results), sent)
        return results
