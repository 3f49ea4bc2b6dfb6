"""Shared fakes: no test touches the network."""
from __future__ import annotations

import os

os.environ.setdefault("JOBNADO_LOG_DIR", "-")

from datetime import datetime
from types import SimpleNamespace
from typing import Any

import pytest

from jobnado.grounded import GroundedResult
from jobnado.mailer import EmailPayload
from jobnado.models import Alert, CVAnalysis, JobOpportunity, Source


def completion(content: str | None) -> SimpleNamespace:
    """Shape of an OpenAI chat-completion response."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    """Stand-in for ``openai.OpenAI``; replays queued responses or exceptions."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return completion(item)


class ScriptedLLM:
    """Stand-in for StructuredGenerationClient at the stage level."""

    def __init__(self, *, generate: list | None = None, complete: list | None = None,
                 chat: list | None = None) -> None:
        self._generate = list(generate or [])
        self._complete = list(complete or [])
        self._chat = list(chat or [])
        self.generate_calls: list[tuple] = []
        self.complete_calls: list[str] = []
        self.chat_calls: list[tuple] = []

    @staticmethod
    def _next(queue: list) -> Any:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def generate(self, parts, schema, *, name: str = "response"):
        self.generate_calls.append((list(parts), schema, name))
        return self._next(self._generate)

    def complete(self, prompt: str) -> str:
        self.complete_calls.append(prompt)
        return self._next(self._complete)

    def chat(self, history, message, system=""):
        self.chat_calls.append((list(history), message, system))
        return self._next(self._chat)


class ScriptedSearch:
    """Stand-in for GroundedSearchClient."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.prompts: list[str] = []

    def search(self, prompt: str) -> GroundedResult:
        self.prompts.append(prompt)
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return GroundedResult(text=item, sources=[])
        return item


class MemoryAlertStore:
    def __init__(self, alerts: list[Alert] | None = None) -> None:
        self.alerts = list(alerts or [])
        self.updates: list[tuple[str, datetime]] = []

    def insert(self, alert: Alert) -> Alert:
        alert.id = alert.id or f"a{len(self.alerts) + 1}"
        self.alerts.append(alert)
        return alert

    def select_active(self) -> list[Alert]:
        return [a for a in self.alerts if a.is_active]

    def update_last_alerted(self, alert_id: str, when: datetime) -> None:
        self.updates.append((alert_id, when))
        for a in self.alerts:
            if a.id == alert_id:
                a.last_alerted_at = when

    def deactivate(self, email: str, role: str | None = None) -> int:
        n = 0
        for a in self.alerts:
            if a.email == email and (role is None or a.role == role) and a.is_active:
                a.is_active = False
                n += 1
        return n


class RecordingSender:
    def __init__(self, *outcomes: tuple[bool, str]) -> None:
        self.outcomes = list(outcomes)
        self.sent: list[EmailPayload] = []

    def send(self, payload: EmailPayload) -> tuple[bool, str]:
        self.sent.append(payload)
        if self.outcomes:
            return self.outcomes.pop(0)
        return True, "Email sent"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


ANALYSIS_JSON: dict[str, Any] = {
    "hardSkills": ["SQL", "Python", "Tableau"],
    "softSkills": ["Storytelling", "Stakeholder management"],
    "experienceLevel": "Mid-Senior",
    "suggestedRoles": ["Data Analyst", "BI Engineer"],
    "adjacentIndustries": ["FinTech", "Healthcare"],
    "antigravityBooleanStrings": [
        {"label": "Strict", "query": '("Data Analyst" OR "BI Engineer") AND SQL', "explanation": "Title match"},
        {"label": "Creative", "query": '"turn data into decisions"', "explanation": "Problem framing"},
        {"label": "Niche", "query": '"healthcare analytics" AND Tableau', "explanation": "Adjacent"},
    ],
}


@pytest.fixture
def analysis() -> CVAnalysis:
    return CVAnalysis.from_dict(ANALYSIS_JSON)


@pytest.fixture
def job() -> JobOpportunity:
    return JobOpportunity(
        id="job-0-1700000000000",
        title="Data Analyst",
        company="Acme Corp",
        match_score=88,
        reasoning="Strong SQL and dashboarding background.",
        application_url="https://acme.example/job/1",
    )


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def acme_source() -> Source:
    return Source(title="Acme Corp Careers", uri="https://acme.example/job/1")
