"""Per-user session state and the analyze → search pipeline that drives it.

State is saved through an injected :class:`SessionStore` after every
mutation and cleared on reset, so the pipeline runs the same against a YAML
file, Streamlit's session dict or nothing at all.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml

from jobnado.analysis import CVAnalysisStage
from jobnado.config import DATA_DIR
from jobnado.cv_input import CVInput, TextInput
from jobnado.log import get_logger
from jobnado.models import CVAnalysis, JobOpportunity
from jobnado.opportunities import OpportunitySearchStage

log = get_logger(__name__)

ANALYSIS_ERROR = "Failed to decode CV. Please ensure the text is readable and try again."
SEARCH_ERROR = "Connection to job sector lost. Retrying orbital scan recommended."


class Phase(str, enum.Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    REVIEW_ANALYSIS = "REVIEW_ANALYSIS"
    SEARCHING = "SEARCHING"
    RESULTS = "RESULTS"


@dataclass
class SessionState:
    phase: Phase = Phase.IDLE
    analysis: CVAnalysis | None = None
    opportunities: list[JobOpportunity] = field(default_factory=list)
    cv_text: str = ""
    country: str = "United States"
    selected_role: str | None = None
    alert_active: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "opportunities": [o.to_dict() for o in self.opportunities],
            "cv_text": self.cv_text,
            "country": self.country,
            "selected_role": self.selected_role,
            "alert_active": self.alert_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionState:
        phase = Phase(data.get("phase", Phase.IDLE.value))
        # a reload mid-call cannot resume the call
        if phase in (Phase.ANALYZING, Phase.SEARCHING):
            phase = Phase.IDLE
        analysis = CVAnalysis.from_dict(data["analysis"]) if data.get("analysis") else None
        if analysis is None and phase != Phase.IDLE:
            phase = Phase.IDLE
        return cls(
            phase=phase,
            analysis=analysis,
            opportunities=[JobOpportunity.from_dict(o) for o in data.get("opportunities") or []],
            cv_text=data.get("cv_text") or "",
            country=data.get("country") or "United States",
            selected_role=data.get("selected_role"),
            alert_active=bool(data.get("alert_active", False)),
        )


class SessionStore(Protocol):
    def load(self) -> SessionState | None: ...

    def save(self, state: SessionState) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    def __init__(self) -> None:
        self.data: dict[str, Any] | None = None

    def load(self) -> SessionState | None:
        return SessionState.from_dict(self.data) if self.data else None

    def save(self, state: SessionState) -> None:
        self.data = state.to_dict()

    def clear(self) -> None:
        self.data = None


class YamlSessionStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or DATA_DIR / "session.yaml"

    def load(self) -> SessionState | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            return SessionState.from_dict(data) if data else None
        except (yaml.YAMLError, ValueError, KeyError) as exc:
            log.warning("Discarding unreadable session file %s: %s", self.path.name, exc)
            return None

    def save(self, state: SessionState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(state.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        self.path.write_text(text, encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class JobSearchSession:
    """One user's walk through analyze → review → search → results."""

    def __init__(
        self,
        analysis_stage: CVAnalysisStage,
        search_stage: OpportunitySearchStage,
        store: SessionStore | None = None,
        default_country: str = "United States",
    ) -> None:
        self.analysis_stage = analysis_stage
        self.search_stage = search_stage
        self.store = store or MemorySessionStore()
        self.default_country = default_country
        self.state = self.store.load() or SessionState(country=default_country)
        # bumped on reset so a late result from a discarded run is ignored
        self._generation = 0

    def _save(self) -> None:
        self.store.save(self.state)

    def set_country(self, country: str) -> None:
        self.state.country = country.strip() or self.default_country
        self._save()

    def analyze(self, cv_input: CVInput) -> CVAnalysis | None:
        """Run the analysis stage; on failure set the error and return to IDLE."""
        generation = self._generation
        if isinstance(cv_input, TextInput):
            self.state.cv_text = cv_input.text
        self.state.phase = Phase.ANALYZING
        self.state.error = None
        self._save()
        try:
            analysis = self.analysis_stage.analyze(cv_input)
        except Exception as exc:
            log.error("CV analysis failed: %s", exc)
            if generation == self._generation:
                self.state.error = ANALYSIS_ERROR
                self.state.phase = Phase.IDLE
                self._save()
            return None
        if generation != self._generation:
            log.info("Session was reset during analysis — discarding result")
            return None
        self.state.analysis = analysis
        self.state.phase = Phase.REVIEW_ANALYSIS
        self._save()
        return analysis

    def search(self, role: str | None = None) -> list[JobOpportunity]:
        if self.state.analysis is None:
            raise RuntimeError("analyze a CV before searching")
        generation = self._generation
        target = role or self.state.analysis.primary_role
        self.state.selected_role = target
        self.state.phase = Phase.SEARCHING
        self.state.error = None
        self._save()
        try:
            results = self.search_stage.search(self.state.analysis, self.state.country or self.default_country, target)
        except Exception as exc:
            log.error("Opportunity search failed: %s", exc)
            if generation == self._generation:
                self.state.error = SEARCH_ERROR
                self.state.phase = Phase.REVIEW_ANALYSIS
                self._save()
            return []
        if generation != self._generation:
            return []
        self.state.opportunities = results
        self.state.phase = Phase.RESULTS
        self._save()
        return results

    def back(self) -> None:
        if self.state.phase == Phase.RESULTS:
            self.state.phase = Phase.REVIEW_ANALYSIS
        elif self.state.phase == Phase.REVIEW_ANALYSIS:
            self.state.phase = Phase.IDLE
        self._save()

    def subscribed(self) -> None:
        self.state.alert_active = True
        self._save()

    def unsubscribed(self) -> None:
        self.state.alert_active = False
        self._save()

    def reset(self) -> None:
        self._generation += 1
        self.state = SessionState(country=self.default_country)
        self.store.clear()
