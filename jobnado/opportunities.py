"""Phase 2: the web sweep.

Asks a search-grounded model for live postings in a pipe-delimited block
format, parses the blocks leniently, attaches the best citation URL to each
result, and degrades to a deterministic simulated set when nothing usable
comes back.
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote

from jobnado.grounded import GroundedSearchClient
from jobnado.log import get_logger
from jobnado.models import CVAnalysis, JobOpportunity, Source
from jobnado.retry import RetryPolicy, linear_backoff, no_backoff

log = get_logger(__name__)

BLOCK_DELIMITER = "|||"
MIN_BLOCK_CHARS = 10

DEFAULT_TITLE = "Opportunity"
DEFAULT_COMPANY = "Unknown Company"
DEFAULT_SCORE = 75
DEFAULT_REASON = "Skills alignment detected."

_TITLE_RE = re.compile(r"Title:\s*(.+)")
_COMPANY_RE = re.compile(r"Company:\s*(.+)")
_SCORE_RE = re.compile(r"Score:\s*(\d+)")
_REASON_RE = re.compile(r"Reason:\s*(.+)")

# strategy name -> (max attempts, backoff)
RETRY_STRATEGIES: dict[str, tuple[int, Callable[[int], float]]] = {
    "backoff": (3, linear_backoff(1.0)),
    "fast": (2, no_backoff),
}

SEARCH_PROMPT = """\
Act as a high-tech career headhunter.
Find 3 LIVE, active job listings for the role of "{role}" (or similar) that would value these skills: {skills}.
Experience Level: {level}.
Target Location: {country}.

SEARCH PROTOCOL:
- Only search for jobs located in or accepting applicants from {country}.
- Aggressively scan for opportunities from major platforms: LinkedIn, Indeed, Glassdoor, Wellfound (AngelList), and Otta.
- Also look for direct company career pages (Greenhouse, Lever, Ashby).
- Prioritize roles posted within the last 14 days.

For each finding, provide:
1. Job Title
2. Company Name
3. Match Confidence (0-100%)
4. A one-sentence reason why this candidate fits based on the skills: {skills}.

Strictly format your response as a list of blocks separated by "|||".
Inside each block, use this format:
Title: [Job Title]
Company: [Company Name]
Score: [Number]
Reason: [Reasoning]

Do not add any other conversational text. Just the blocks.
"""


@dataclass
class PartialJobRecord:
    """One parsed block, with defaults already filled in."""

    title: str = DEFAULT_TITLE
    company: str = DEFAULT_COMPANY
    score: int = DEFAULT_SCORE
    reason: str = DEFAULT_REASON


def _first(pattern: re.Pattern[str], block: str) -> str | None:
    m = pattern.search(block)
    if not m:
        return None
    value = m.group(1).strip()
    return value or None


def parse_blocks(text: str) -> list[PartialJobRecord]:
    """Split *text* on ``|||`` and extract the fields of every block.

    Segments shorter than 10 characters once stripped are noise. Missing
    fields fall back to their defaults; a malformed block is never dropped
    and this function never raises.
    """
    records: list[PartialJobRecord] = []
    for block in (text or "").split(BLOCK_DELIMITER):
        if len(block.strip()) < MIN_BLOCK_CHARS:
            continue
        score = _first(_SCORE_RE, block)
        records.append(
            PartialJobRecord(
                title=_first(_TITLE_RE, block) or DEFAULT_TITLE,
                company=_first(_COMPANY_RE, block) or DEFAULT_COMPANY,
                score=int(score) if score else DEFAULT_SCORE,
                reason=_first(_REASON_RE, block) or DEFAULT_REASON,
            )
        )
    return records


def google_search_url(query: str) -> str:
    return f"https://www.google.com/search?q={quote(query, safe='')}"


def resolve_application_url(title: str, company: str, country: str, sources: list[Source]) -> str:
    """Prefer a citation whose title names the company; else a Google search link."""
    url = google_search_url(f"{title} {company} job apply {country}")
    company_name = company.lower()
    if len(company_name) <= 2:
        return url
    for source in sources:
        if company_name in (source.title or "").lower() and source.uri:
            return source.uri
    return url


def simulated_opportunities(analysis: CVAnalysis, country: str, role: str) -> list[JobOpportunity]:
    """Three deterministic results derived from the profile alone."""
    first_skill = analysis.hard_skills[0] if analysis.hard_skills else "your core skills"
    industry = analysis.adjacent_industries[0] if analysis.adjacent_industries else "tech"
    soft_skill = analysis.soft_skills[0] if analysis.soft_skills else "collaboration"
    industry_query = analysis.adjacent_industries[0] if analysis.adjacent_industries else ""
    return [
        JobOpportunity(
            id="sim-1",
            title=role,
            company="Confidential Tech Partner",
            match_score=92,
            reasoning=f"Your experience with {first_skill} is in high demand for this role type in {country}.",
            application_url=(
                "https://www.linkedin.com/jobs/search/"
                f"?keywords={quote(role, safe='')}&location={quote(country, safe='')}"
            ),
            is_simulated=True,
        ),
        JobOpportunity(
            id="sim-2",
            title=f"{role} Lead",
            company="Global Innovations Corp",
            match_score=88,
            reasoning=f"Strong alignment with your background in {industry}.",
            application_url=(
                "https://www.indeed.com/jobs"
                f"?q={quote(f'{role} {industry_query}'.strip(), safe='')}&l={quote(country, safe='')}"
            ),
            is_simulated=True,
        ),
        JobOpportunity(
            id="sim-3",
            title=f"Senior {role}",
            company="Future Systems Ltd",
            match_score=85,
            reasoning=f"Based on your {analysis.experience_level} level and soft skills in {soft_skill}.",
            application_url=(
                "https://www.google.com/search?ibp=htl;jobs"
                f"&q={quote(f'Senior {role} {country} jobs', safe='')}"
            ),
            is_simulated=True,
        ),
    ]


def build_search_prompt(analysis: CVAnalysis, country: str, role: str) -> str:
    return SEARCH_PROMPT.format(
        role=role,
        skills=", ".join(analysis.hard_skills[:5]),
        level=analysis.experience_level,
        country=country,
    )


class OpportunitySearchStage:
    def __init__(
        self,
        client: GroundedSearchClient,
        *,
        strategy: str = "backoff",
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if strategy not in RETRY_STRATEGIES:
            raise ValueError(f"unknown retry strategy {strategy!r}")
        attempts, backoff = RETRY_STRATEGIES[strategy]
        self.client = client
        self.strategy = strategy
        self.policy = RetryPolicy(attempts, backoff, sleep=sleep, name="Opportunity search")
        self.clock = clock

    def search(self, analysis: CVAnalysis, country: str, role: str | None = None) -> list[JobOpportunity]:
        """Live results when the grounded search yields parseable blocks,
        otherwise the simulated set. Never raises, never returns []."""
        target_role = role or analysis.primary_role
        prompt = build_search_prompt(analysis, country, target_role)
        try:
            result = self.policy.execute(lambda: self.client.search(prompt))
            jobs = self._to_opportunities(parse_blocks(result.text), result.sources, country)
        except Exception as exc:
            log.warning("Search API failed (%s), switching to simulation", exc)
            return simulated_opportunities(analysis, country, target_role)

        if not jobs:
            log.warning("No structured jobs parsed from response, switching to simulation")
            return simulated_opportunities(analysis, country, target_role)

        log.info("Found %d live opportunities for %r in %s", len(jobs), target_role, country)
        return jobs

    def _to_opportunities(
        self, records: list[PartialJobRecord], sources: list[Source], country: str
    ) -> list[JobOpportunity]:
        stamp = int(self.clock() * 1000)
        return [
            JobOpportunity(
                id=f"job-{index}-{stamp}",
                title=rec.title,
                company=rec.company,
                match_score=rec.score,
                reasoning=rec.reason,
                application_url=resolve_application_url(rec.title, rec.company, country, sources),
                is_simulated=False,
            )
            for index, rec in enumerate(records)
        ]
